import unittest

from statementledger.aggregator import Aggregator
from statementledger.errors import NoTransactionsFoundError
from statementledger.models import StatementSummary, Transaction


def txn(date, description, money_in=None, money_out=None, balance='0.00'):
  return Transaction(date, description, money_in, money_out, balance)


class AggregatorTest(unittest.TestCase):
  def test_sorted_by_date_stable(self):
    rows = [
      txn('2024-01-10', 'Later', money_out='1.00'),
      txn('2024-01-02', 'First same day', money_out='2.00'),
      txn('2024-01-02', 'Second same day', money_in='3.00'),
    ]
    ledger = Aggregator().aggregate(rows).transactions
    self.assertEqual([t.description for t in ledger], ['First same day', 'Second same day', 'Later'])

  def test_totals(self):
    rows = [
      txn('2024-01-01', 'A', money_in='1,000.00'),
      txn('2024-01-02', 'B', money_in='234.56'),
      txn('2024-01-03', 'C', money_out='0.10'),
      txn('2024-01-04', 'D', money_out='0.20'),
    ]
    statement = Aggregator().aggregate(rows, account_number='12345678')
    self.assertEqual(
      statement.metadata,
      StatementSummary(total_credits='1,234.56', total_debits='0.30', account_number='12345678'),
    )
    self.assertEqual(
      statement.to_dict()['metadata'],
      {'totalCredits': '1,234.56', 'totalDebits': '0.30', 'accountNumber': '12345678'},
    )

  def test_no_credits(self):
    statement = Aggregator().aggregate([txn('2024-01-01', 'A', money_out='5.00')])
    self.assertEqual(statement.metadata.total_credits, '0.00')
    self.assertEqual(len(statement), 1)

  def test_empty_ledger_raises(self):
    with self.assertRaises(NoTransactionsFoundError) as ctx:
      Aggregator().aggregate([])
    self.assertIn('No transactions found', ctx.exception.user_message)


class TransactionTest(unittest.TestCase):
  def test_money_in_and_out_exclusive(self):
    with self.assertRaises(ValueError):
      Transaction('2024-01-01', 'Both', '1.00', '1.00', '0.00')

  def test_to_dict(self):
    self.assertEqual(
      txn('2024-01-01', 'Salary', money_in='10.00', balance='20.00').to_dict(),
      {'date': '2024-01-01', 'description': 'Salary', 'moneyIn': '10.00', 'moneyOut': None, 'balance': '20.00'},
    )


if __name__ == '__main__':
  unittest.main()
