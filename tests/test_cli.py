import contextlib
import io
import json
import os
import tempfile
import unittest

from statementledger.__main__ import main

from tests.samples import NO_DATES_STATEMENT, SAMPLE_STATEMENT


class CliTest(unittest.TestCase):
  def setUp(self):
    self.tmp = tempfile.TemporaryDirectory()
    self.addCleanup(self.tmp.cleanup)

  def _write(self, name, text):
    path = os.path.join(self.tmp.name, name)
    with open(path, 'w', encoding='utf-8') as f:
      f.write(text)
    return path

  def test_writes_output_file(self):
    src = self._write('statement.txt', SAMPLE_STATEMENT)
    out = os.path.join(self.tmp.name, 'ledger.csv')
    stdout = io.StringIO()
    with contextlib.redirect_stdout(stdout):
      code = main([src, '-o', out])
    self.assertEqual(code, 0)
    self.assertTrue(os.path.exists(out))
    self.assertIn('4 transactions written', stdout.getvalue())

  def test_json(self):
    src = self._write('statement.txt', SAMPLE_STATEMENT)
    stdout = io.StringIO()
    with contextlib.redirect_stdout(stdout):
      code = main([src, '--json'])
    self.assertEqual(code, 0)
    data = json.loads(stdout.getvalue())
    self.assertEqual(len(data['transactions']), 4)
    self.assertEqual(data['metadata']['totalCredits'], '1,514.50')

  def test_rules_file(self):
    src = self._write('statement.txt', '12 Jan 2024 Interest paid 1.00 50.00\n')
    rules = self._write('rules.json', json.dumps({'money_in_patterns': ['interest paid']}))
    stdout = io.StringIO()
    with contextlib.redirect_stdout(stdout):
      main([src, '--json', '--rules', rules])
    self.assertEqual(json.loads(stdout.getvalue())['transactions'][0]['moneyIn'], '1.00')

  def test_no_transactions(self):
    src = self._write('statement.txt', NO_DATES_STATEMENT)
    stderr = io.StringIO()
    with contextlib.redirect_stderr(stderr):
      code = main([src, '-o', os.path.join(self.tmp.name, 'out.csv')])
    self.assertEqual(code, 1)
    self.assertIn('No transactions found', stderr.getvalue())


if __name__ == '__main__':
  unittest.main()
