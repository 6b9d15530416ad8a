#!/usr/bin/python3
"""This module implements the Transaction class, which executes statements on
a single physical connection inside an explicit transaction.

A transaction is open until it is committed or rolled back, after which it
refuses any further statements. A commit or rollback refused by the server
leaves the transaction failed, which is final as well. Used as a context manager it
commits on success and rolls back when the block raises:

  with connection.Begin() as transaction:
    transaction.Insert({'name': 'Elmer'}, 'author')
"""
__version__ = '0.4'

# Standard modules
import contextlib
import threading

# Third-party modules
import pymysql

# Application specific modules
from . import base
from . import errors

OPEN = 'open'
COMMITTED = 'committed'
ROLLED_BACK = 'rolled back'
FAILED = 'failed'
TIMER_DELAY = 60


class Transaction(base.BaseFacade):
  """MySQL transaction, bound to one pooled connection until it finishes."""

  def __init__(self, owner, pooled_connection):
    """Wraps a pooled connection on which a transaction was already begun.

    Arguments:
      @ owner: connection.Connection
        The connection facade this transaction was started from.
      @ pooled_connection: SQLAlchemy pooled connection proxy
        Checked out connection, returned to the pool when the transaction ends.
    """
    self.owner = owner
    self.logger = owner.logger
    self.debug = owner.debug
    self.queries = []
    self.state = OPEN
    self.transaction_timer = None
    self._connection = pooled_connection
    self._lock = threading.Lock()
    self.StartTransactionTimer()

  def __enter__(self):
    return self

  def __exit__(self, exc_type, _exc_value, _exc_traceback):
    """End of transaction: commits on success, or rolls back on failure."""
    if self.state != OPEN:
      return
    if exc_type:
      self.Rollback()
      if self.debug:
        self.logger.error(
            'The transaction was rolled back after an exception.\n'
            'Queries in transaction (last one triggered):\n\n%s',
            '\n\n'.join(self.queries))
    else:
      self.Commit()

  def __repr__(self):
    return '<%s %s on %r>' % (type(self).__name__, self.state, self.owner.dbname)

  def Commit(self):
    """Makes every statement executed in this transaction permanent.

    Raises:
      CommitError: The transaction was already finished, or the server refused
                   the commit. In the latter case the transaction is finished
                   regardless.
    """
    self._Finish(COMMITTED, 'commit', errors.CommitError)
    self.logger.debug('Transaction committed.')

  def Rollback(self):
    """Discards every statement executed in this transaction.

    Raises:
      RollbackError: The transaction was already finished, or the server
                     refused the rollback.
    """
    self._Finish(ROLLED_BACK, 'rollback', errors.RollbackError)
    self.logger.debug('Transaction rolled back.')

  def StartTransactionTimer(self, delay=TIMER_DELAY):
    """Writes a warning to the log if the transaction is open too long.

    N.B. The timer is only set when the connection is in debug mode. Calling
    this method on a non-debug connection will do nothing.
    """
    def Warn():
      self.logger.warning('Transaction open for more than %s seconds.', delay)

    if self.debug:
      self.transaction_timer = threading.Timer(delay, Warn)
      self.transaction_timer.daemon = True
      self.transaction_timer.start()

  def ResetTransactionTimer(self):
    """Resets any existing transaction timer."""
    if self.transaction_timer:
      self.transaction_timer.cancel()

  def _Finish(self, state, method, error_class):
    with self._lock:
      if self.state != OPEN:
        raise error_class('Transaction already %s.' % self.state)
      self.ResetTransactionTimer()
      self.state = state
      connection, self._connection = self._connection, None
      try:
        getattr(connection.dbapi_connection, method)()
      except pymysql.Error as error:
        self.state = FAILED
        connection.invalidate()
        raise error_class('Transaction %s failed: %s' % (method, error)) from error
      connection.close()

  @contextlib.contextmanager
  def _PhysicalConnection(self):
    with self._lock:
      if self.state != OPEN:
        raise errors.InvalidStateError(
            'Transaction already %s, no further statements allowed.'
            % self.state)
      yield self._connection.dbapi_connection

  def _LogQuery(self, sql_statement):
    self.owner.counter_queries += 1
    self.queries.append(sql_statement.text)
    self.logger.debug('%s %r', sql_statement.text, sql_statement.values)
