import argparse
import json
import logging
import sys
from pathlib import Path

from .converter import StatementConverter
from .errors import LedgerError
from .export import FORMATS, output_filename
from .rules import DEFAULT_RULES, load_rules


def build_parser():
    parser = argparse.ArgumentParser(description='Convert bank statement PDFs into a transaction ledger')
    parser.add_argument('inputs', nargs='+', help='Statement PDFs (or .txt files of already extracted text)')
    parser.add_argument('-o', '--output', help='Output file (default: bank_statement_<date>_<id>.<format>)')
    parser.add_argument('-f', '--format', choices=FORMATS, help='Output format (default: from --output suffix, else xlsx)')
    parser.add_argument('--rules', help='JSON file with extra skip patterns / keywords')
    parser.add_argument('--password', help='Password for encrypted PDFs')
    parser.add_argument('--year', type=int, help='Year for dates printed without one (default: current year)')
    parser.add_argument('--json', action='store_true', help='Print the ledger as JSON instead of writing a file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s | %(message)s",
    )

    try:
        rules = load_rules(args.rules) if args.rules else DEFAULT_RULES
        converter = StatementConverter(rules, default_year=args.year)
        if args.json:
            statement = converter.convert_many(args.inputs, password=args.password)
            json.dump(statement.to_dict(), sys.stdout, indent=2)
            sys.stdout.write('\n')
            return 0

        fmt = args.format or (Path(args.output).suffix.lstrip('.') if args.output else 'xlsx')
        output = args.output or output_filename(fmt)
        statement = converter.convert(args.inputs, output, fmt=fmt, password=args.password)
    except LedgerError as e:
        print(f'Error: {e.user_message}', file=sys.stderr)
        return 1
    except ValueError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    print(f'{len(statement)} transactions written to {output} '
          f'(credits {statement.metadata.total_credits}, debits {statement.metadata.total_debits})')
    return 0


if __name__ == '__main__':
    sys.exit(main())
