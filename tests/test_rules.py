import dataclasses
import json
import os
import tempfile
import unittest

from statementledger.converter import StatementConverter
from statementledger.descriptions import DescriptionCleaner
from statementledger.errors import ConfigError
from statementledger.normalizer import TextNormalizer
from statementledger.rules import DEFAULT_RULES, RuleSet, alternation, load_rules


class RuleSetTest(unittest.TestCase):
  def test_predicates(self):
    self.assertTrue(DEFAULT_RULES.is_skip('Page 2 of 3'))
    self.assertTrue(DEFAULT_RULES.is_skip('Date Description Money out Money in Balance'))
    self.assertFalse(DEFAULT_RULES.is_skip('3 Jan Card Payment 1.00 2.00'))
    self.assertTrue(DEFAULT_RULES.starts_with_page_marker('  Page 2 of 3'))
    self.assertTrue(DEFAULT_RULES.starts_with_page_marker('Balance brought forward 10.00'))
    self.assertFalse(DEFAULT_RULES.starts_with_page_marker('3 Jan Balance brought forward'))
    self.assertTrue(DEFAULT_RULES.has_transaction_keyword('DIRECT DEBIT'))

  def test_immutable(self):
    with self.assertRaises(dataclasses.FrozenInstanceError):
      DEFAULT_RULES.skip_patterns = ()

  def test_extend_appends(self):
    rules = DEFAULT_RULES.extend(skip_patterns=['lloyds bank'])
    self.assertEqual(rules.skip_patterns[-1], 'lloyds bank')
    self.assertTrue(rules.is_skip('Lloyds Bank plc'))
    self.assertTrue(rules.is_skip('Barclays Bank UK PLC'))
    self.assertFalse(DEFAULT_RULES.is_skip('Lloyds Bank plc'))

  def test_extend_unknown_table(self):
    with self.assertRaises(ConfigError):
      DEFAULT_RULES.extend(colours=['red'])

  def test_from_dict(self):
    rules = RuleSet.from_dict({
      'transaction_keywords': ['cash machine'],
      'type_abbreviations': {'AMZ': 'Amazon'},
    })
    self.assertTrue(rules.has_transaction_keyword('CASH MACHINE 10.00'))
    self.assertEqual(rules.abbreviation_map['AMZ'], 'Amazon')
    self.assertEqual(rules.abbreviation_map['DD'], 'Direct Debit')

  def test_from_dict_replace(self):
    rules = RuleSet.from_dict({'replace': True, 'skip_patterns': ['foo']})
    self.assertEqual(rules.skip_patterns, ('foo',))
    self.assertEqual(rules.page_markers, DEFAULT_RULES.page_markers)

  def test_from_dict_errors(self):
    for data in (
      {'colours': ['red']},
      {'skip_patterns': ['([']},
      {'money_in_patterns': 'refund'},
    ):
      with self.assertRaises(ConfigError):
        RuleSet.from_dict(data)


class EmptyTableTest(unittest.TestCase):
  """Tables replaced by empty lists must match nothing."""

  def _rules(self, **tables):
    return RuleSet.from_dict(dict(tables, replace=True))

  def test_alternation(self):
    self.assertEqual(alternation([]), '(?!)')
    self.assertEqual(alternation(['', 'a']), '(?:a)')

  def test_no_page_markers(self):
    rules = self._rules(page_markers=[])
    self.assertFalse(rules.starts_with_page_marker('Page 1 of 2'))
    self.assertEqual(TextNormalizer(rules).normalize('12 Jan Shop 1.00 2.00'), ['12 Jan Shop 1.00 2.00'])

  def test_no_type_phrases(self):
    cleaner = DescriptionCleaner(self._rules(transaction_type_phrases=[]))
    self.assertEqual(cleaner.clean('Acme Shop'), 'Acme Shop')
    self.assertEqual(cleaner.split_type_phrase('DD Gas'), ('Direct Debit', 'Gas'))

  def test_no_legal_suffixes(self):
    cleaner = DescriptionCleaner(self._rules(legal_suffixes=[]))
    self.assertEqual(cleaner.clean('Acme Ltd'), 'Acme Ltd')

  def test_no_separator_words(self):
    cleaner = DescriptionCleaner(self._rules(separator_words=[]))
    self.assertEqual(cleaner.clean('Tesco at London'), 'Tesco At London')
    self.assertEqual(cleaner.clean('Tesco, London'), 'Tesco')

  def test_pipeline_with_all_tables_empty(self):
    rules = self._rules(page_markers=[], transaction_type_phrases=[], legal_suffixes=[], separator_words=[])
    statement = StatementConverter(rules).convert_text('12 Jan 2024 Card Payment to Acme Ltd 1.00 2.00')
    self.assertEqual(len(statement), 1)
    self.assertEqual(statement.transactions[0].description, 'Card Payment To Acme Ltd')


class LoadRulesTest(unittest.TestCase):
  def _write(self, tmp, content):
    path = os.path.join(tmp, 'rules.json')
    with open(path, 'w', encoding='utf-8') as f:
      f.write(content)
    return path

  def test_load(self):
    with tempfile.TemporaryDirectory() as tmp:
      path = self._write(tmp, json.dumps({'money_out_patterns': ['^gym']}))
      rules = load_rules(path)
    self.assertEqual(rules.money_out_patterns[-1], '^gym')

  def test_load_errors(self):
    with tempfile.TemporaryDirectory() as tmp:
      with self.assertRaises(ConfigError):
        load_rules(os.path.join(tmp, 'missing.json'))
      with self.assertRaises(ConfigError):
        load_rules(self._write(tmp, '{not json'))
      with self.assertRaises(ConfigError):
        load_rules(self._write(tmp, '["a list"]'))


if __name__ == '__main__':
  unittest.main()
