#!/usr/bin/python3
"""Offline test suite for the transaction facade."""

# Too many public methods
# pylint: disable=R0904

# Standard modules
import unittest

# Third-party modules
import pymysql

# Unittest target
import mysqltalk
from mysqltalk import transaction

# Test helpers
import fakedriver


class TransactionTestCase(unittest.TestCase):
  def setUp(self):
    self.server = fakedriver.FakeServer()
    self.server.__enter__()
    self.addCleanup(self.server.__exit__, None, None, None)
    self.connection = mysqltalk.Connect('localhost', 'elmer', 'secret', 'shop')


class LifecycleTests(TransactionTestCase):
  """Beginning and finishing transactions."""

  def testBegin(self):
    """[Begin] A transaction begins on a physical connection of its own"""
    trans = self.connection.Begin()
    self.assertEqual(trans.state, transaction.OPEN)
    self.assertEqual(self.server.connections[0].calls, ['begin'])

  def testStatementsUseTransactionConnection(self):
    """[Transaction] All statements run on the transaction's connection"""
    trans = self.connection.Begin()
    self.server.Respond(affected=1, insertid=7)
    self.assertEqual(trans.Insert({'name': 'Elmer'}, 'author'), 7)
    trans.Update({'name': 'Jan'}, 'author', 'ID = ?', 7)
    trans.Delete('author', 'ID = ?', 7)
    trans.Commit()
    self.assertEqual(len(self.server.connections), 1)
    self.assertEqual(self.server.connections[0].calls[:5],
                     ['begin', 'execute', 'execute', 'execute', 'commit'])
    self.assertEqual(len(trans.queries), 3)

  def testConcurrentTransactions(self):
    """[Transaction] Open transactions never share a physical connection"""
    first = self.connection.Begin()
    second = self.connection.Begin()
    self.assertEqual(len(self.server.connections), 2)
    first.Commit()
    second.Rollback()

  def testCommit(self):
    """[Commit] Commits and finishes the transaction"""
    trans = self.connection.Begin()
    trans.Insert({'name': 'Elmer'}, 'author')
    trans.Commit()
    self.assertEqual(trans.state, transaction.COMMITTED)
    self.assertEqual(self.server.connections[0].calls[:3],
                     ['begin', 'execute', 'commit'])

  def testRollback(self):
    """[Rollback] Rolls back and finishes the transaction"""
    trans = self.connection.Begin()
    trans.Insert({'name': 'Elmer'}, 'author')
    trans.Rollback()
    self.assertEqual(trans.state, transaction.ROLLED_BACK)
    self.assertEqual(self.server.connections[0].calls[:3],
                     ['begin', 'execute', 'rollback'])

  def testConnectionReturnedToPool(self):
    """[Commit] The physical connection is reused after the transaction"""
    self.connection.Begin().Commit()
    self.connection.Query('SELECT 1')
    self.assertEqual(len(self.server.connections), 1)

  def testBeginFailure(self):
    """[Begin] A refused BEGIN raises TransactionError"""
    self.server.FailOn('begin', pymysql.err.OperationalError(2006, 'Gone away'))
    with self.assertRaises(mysqltalk.TransactionError) as context:
      self.connection.Begin()
    self.assertIsInstance(context.exception.__cause__,
                          pymysql.err.OperationalError)

  def testBeginWithoutServer(self):
    """[Begin] Failure to connect raises TransactionError"""
    self.server.connect_error = pymysql.err.OperationalError(2003, 'No server')
    self.assertRaises(mysqltalk.TransactionError, self.connection.Begin)


class FinishedStateTests(TransactionTestCase):
  """Nothing is allowed on a finished transaction."""

  def testStatementsAfterCommit(self):
    """[State] Statements after Commit raise InvalidStateError"""
    trans = self.connection.Begin()
    trans.Commit()
    executed = len(self.server.executed)
    self.assertRaises(mysqltalk.InvalidStateError,
                      trans.Insert, {'name': 'Elmer'}, 'author')
    self.assertRaises(mysqltalk.InvalidStateError,
                      trans.Update, {'name': 'Elmer'}, 'author', 'ID = 1')
    self.assertRaises(mysqltalk.InvalidStateError,
                      trans.Delete, 'author', 'ID = 1')
    self.assertRaises(mysqltalk.InvalidStateError, trans.Query, 'SELECT 1')
    self.assertRaises(mysqltalk.InvalidStateError,
                      trans.QueryOne('SELECT 1').Scan)
    self.assertEqual(len(self.server.executed), executed)

  def testStatementsAfterRollback(self):
    """[State] Statements after Rollback raise InvalidStateError"""
    trans = self.connection.Begin()
    trans.Rollback()
    self.assertRaises(mysqltalk.InvalidStateError,
                      trans.Replace, {'name': 'Elmer'}, 'author')

  def testDoubleFinish(self):
    """[State] Finishing twice raises CommitError or RollbackError"""
    committed = self.connection.Begin()
    committed.Commit()
    self.assertRaises(mysqltalk.CommitError, committed.Commit)
    self.assertRaises(mysqltalk.RollbackError, committed.Rollback)
    rolled_back = self.connection.Begin()
    rolled_back.Rollback()
    self.assertRaises(mysqltalk.CommitError, rolled_back.Commit)

  def testCommitFailure(self):
    """[Commit] A refused commit raises CommitError and finishes the
    transaction"""
    trans = self.connection.Begin()
    self.server.FailOn('commit', pymysql.err.OperationalError(2013, 'Lost'))
    self.assertRaises(mysqltalk.CommitError, trans.Commit)
    self.assertEqual(trans.state, transaction.FAILED)
    self.assertTrue(self.server.connections[0].closed)
    self.assertRaises(mysqltalk.InvalidStateError, trans.Query, 'SELECT 1')

  def testRollbackFailure(self):
    """[Rollback] A refused rollback raises RollbackError"""
    trans = self.connection.Begin()
    self.server.FailOn('rollback', pymysql.err.OperationalError(2013, 'Lost'))
    self.assertRaises(mysqltalk.RollbackError, trans.Rollback)
    self.assertTrue(issubclass(mysqltalk.RollbackError,
                               mysqltalk.TransactionError))


class ContextManagerTests(TransactionTestCase):
  """Transactions as context managers."""

  def testCommitOnSuccess(self):
    """[Context] A block that completes commits the transaction"""
    with self.connection.Begin() as trans:
      trans.Insert({'name': 'Elmer'}, 'author')
    self.assertEqual(trans.state, transaction.COMMITTED)

  def testRollbackOnException(self):
    """[Context] A block that raises rolls back, the exception propagates"""
    with self.assertRaises(KeyError):
      with self.connection.Begin() as trans:
        trans.Insert({'name': 'Elmer'}, 'author')
        raise KeyError('oops')
    self.assertEqual(trans.state, transaction.ROLLED_BACK)

  def testFinishedInsideBlock(self):
    """[Context] A transaction finished inside the block is left alone"""
    with self.connection.Begin() as trans:
      trans.Rollback()
    self.assertEqual(trans.state, transaction.ROLLED_BACK)

  def testConnectionContext(self):
    """[Context] Using the connection as context begins a transaction"""
    with self.connection as trans:
      self.assertIsInstance(trans, transaction.Transaction)
      trans.Insert({'name': 'Elmer'}, 'author')
    self.assertEqual(trans.state, transaction.COMMITTED)
    with self.assertRaises(ValueError):
      with self.connection as trans:
        raise ValueError
    self.assertEqual(trans.state, transaction.ROLLED_BACK)

  def testNestedConnectionContexts(self):
    """[Context] Nested connection contexts are separate transactions"""
    with self.connection as outer:
      with self.connection as inner:
        self.assertIsNot(outer, inner)
      self.assertEqual(inner.state, transaction.COMMITTED)
      self.assertEqual(outer.state, transaction.OPEN)
    self.assertEqual(outer.state, transaction.COMMITTED)


if __name__ == '__main__':
  unittest.main(testRunner=unittest.TextTestRunner(verbosity=2))
