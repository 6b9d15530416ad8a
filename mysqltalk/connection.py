#!/usr/bin/python3
"""This module implements the Connection class, which represents one logical
session with a MySQL database. Physical PyMySQL connections are taken from a
pool for every statement, and returned to it afterwards; a transaction keeps
its physical connection until it is committed or rolled back.
"""
__version__ = '0.6'

# Standard modules
import contextlib
import logging
import threading

# Third-party modules
import pymysql
from sqlalchemy import event
from sqlalchemy import exc
from sqlalchemy import pool

# Application specific modules
from . import base
from . import errors
from . import options
from . import transaction

DEFAULT_MAX_IDLE = 2
POOL_TIMEOUT = 30
DISCONNECT_ERRORS = pymysql.OperationalError, pymysql.InterfaceError


class Connection(base.BaseFacade):
  """MySQL Database Connection Object"""

  def __init__(self, host, username, password, dbname, charset='utf8mb4',
               custom_options=None, debug=False):
    """Sets up a connection pool for the database. No connection is made until
    the first statement is executed.

    Arguments:
      @ host: str
        Host to connect to, optionally with ':port'. A path is used as the
        location of a unix socket.
      @ username: str
        User to connect as.
      @ password: str
        Password to use.
      @ dbname: str
        Database to use.
      % charset: str ~~ 'utf8mb4'
        Connection character set.
      % custom_options: dict ~~ None
        Options overriding the defaults: parseTime, readTimeout, writeTimeout,
        allowNativePasswords, loc, timeout, clientFoundRows, collation. Any
        other option is set as a session system variable.
      % debug: bool ~~ False
        Logs every statement when enabled, and warns about long transactions.

    Raises:
      ConnectionError: The options could not be translated for PyMySQL.
    """
    self.dbname = dbname
    self.charset = charset
    self.options = options.MergeOptions(charset, custom_options)
    self.counter_queries = 0
    self.counter_transactions = 0
    self.closed = False
    self.logger = logging.getLogger('mysql_%s' % dbname)
    self.debug = debug
    self.logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    self._connect_arguments = options.ConnectArguments(
        host, username, password, dbname, self.options)
    self._context = threading.local()
    self._pool, self._slots = self._CreatePool(0, DEFAULT_MAX_IDLE, 0)

  def __enter__(self):
    """Begins a transaction and returns it."""
    stack = self._context.__dict__.setdefault('transactions', [])
    stack.append(self.Begin())
    return stack[-1]

  def __exit__(self, exc_type, exc_value, exc_traceback):
    """End of transaction: commits on success, or rolls back on failure."""
    self._context.transactions.pop().__exit__(
        exc_type, exc_value, exc_traceback)

  def __repr__(self):
    return '<%s %r%s>' % (type(self).__name__, self.dbname,
                          ' (closed)' if self.closed else '')

  def Begin(self):
    """Starts a transaction on a physical connection of its own.

    Returns:
      transaction.Transaction: The open transaction.

    Raises:
      TransactionError: No physical connection could be obtained, or the server
                        refused to start the transaction.
    """
    try:
      pooled_connection = self._Checkout()
    except errors.ConnectionError as error:
      raise errors.TransactionError(
          'Could not start transaction: %s' % error) from error
    try:
      pooled_connection.dbapi_connection.begin()
    except pymysql.Error as error:
      pooled_connection.invalidate()
      raise errors.TransactionError(
          'Could not start transaction: %s' % error) from error
    self.counter_transactions += 1
    self.logger.debug('Beginning new transaction.')
    return transaction.Transaction(self, pooled_connection)

  def Close(self):
    """Closes every pooled connection and refuses further use.

    Raises:
      CloseError: The connection was already closed, or the pool could not be
                  disposed of cleanly.
    """
    if self.closed:
      raise errors.CloseError('Connection to %r already closed.' % self.dbname)
    self.closed = True
    checked_out = getattr(self._pool, 'checkedout', lambda: 0)()
    if checked_out:
      self.logger.warning('Closing with %d connection%s still in use.',
                          checked_out, 's'[checked_out == 1:])
    try:
      self._pool.dispose()
    except Exception as error:
      raise errors.CloseError(
          'Closing connection to %r failed: %r' % (self.dbname, error)
      ) from error
    self.logger.debug('Closed connection to %r.', self.dbname)

  def Info(self):
    """Returns a dictionary of connection information and statistics.

    Returns
      dictionary: keys: 'db', 'charset', 'debug', 'closed', 'querycount',
                        'transactioncount', 'pool'
    """
    return {'db': self.dbname,
            'charset': self.charset,
            'debug': self.debug,
            'closed': self.closed,
            'querycount': self.counter_queries,
            'transactioncount': self.counter_transactions,
            'pool': self._pool.status()}

  def SetPoolLimits(self, max_open, max_idle, max_lifetime):
    """Replaces the connection pool with one that honours the given limits.

    Connections that are in use when the pool is replaced are closed once they
    are returned.

    Arguments:
      @ max_open: int
        Maximum number of physical connections, 0 or less for no limit.
      @ max_idle: int
        Maximum number of idle connections kept, 0 or less to keep none.
        Reduced to max_open when that is lower.
      @ max_lifetime: number, str or timedelta
        Seconds (or a duration such as '1h') after which a connection is
        replaced, 0 or less to reuse connections indefinitely.
    """
    self._CheckOpen()
    new_pool, new_slots = self._CreatePool(
        max_open, max_idle, options.ParseDuration(max_lifetime, 'max_lifetime'))
    old_pool, self._pool, self._slots = self._pool, new_pool, new_slots
    old_pool.dispose()

  def _CheckOpen(self):
    if self.closed:
      raise errors.InvalidStateError(
          'Connection to %r is closed.' % self.dbname)

  def _Checkout(self):
    """Returns a pooled connection proxy, connecting if necessary."""
    self._CheckOpen()
    connection_pool, slots = self._pool, self._slots
    if slots is not None and not slots.acquire(timeout=POOL_TIMEOUT):
      raise errors.ConnectionError(
          'Connection to %r resulted in: no free connection within %s seconds.'
          % (self.dbname, POOL_TIMEOUT))
    try:
      return connection_pool.connect()
    except (pymysql.Error, exc.TimeoutError) as error:
      if slots is not None:
        slots.release()
      raise errors.ConnectionError(
          'Connection to %r resulted in: %s' % (self.dbname, error)) from error

  def _Connect(self):
    self.logger.debug('Opening physical connection to %r.', self.dbname)
    return pymysql.connect(**self._connect_arguments)

  def _CreatePool(self, max_open, max_idle, max_lifetime):
    """Returns a new pool, and the semaphore limiting its checkouts if the pool
    cannot limit them itself."""
    if max_idle <= 0:
      # NullPool closes every connection on checkin but has no size limit.
      new_pool = pool.NullPool(self._Connect)
      if max_open <= 0:
        return new_pool, None
      slots = threading.BoundedSemaphore(max_open)

      def _ReleaseSlot(dbapi_connection, connection_record):
        slots.release()

      event.listen(new_pool, 'checkin', _ReleaseSlot)
      return new_pool, slots
    if max_open > 0:
      max_idle = min(max_idle, max_open)
      max_overflow = max_open - max_idle
    else:
      max_overflow = -1
    return pool.QueuePool(
        self._Connect, pool_size=max_idle, max_overflow=max_overflow,
        recycle=max_lifetime if max_lifetime > 0 else -1,
        timeout=POOL_TIMEOUT), None

  @contextlib.contextmanager
  def _PhysicalConnection(self):
    pooled_connection = self._Checkout()
    disconnected = False
    try:
      yield pooled_connection.dbapi_connection
    except errors.StatementFailure as error:
      disconnected = isinstance(error.__cause__, DISCONNECT_ERRORS)
      raise
    finally:
      if disconnected:
        pooled_connection.invalidate()
      else:
        pooled_connection.close()

  def _LogQuery(self, sql_statement):
    self.counter_queries += 1
    self.logger.debug('%s %r', sql_statement.text, sql_statement.values)

  TransactionError = errors.TransactionError
  CommitError = errors.CommitError
  RollbackError = errors.RollbackError
  CloseError = errors.CloseError
  ConnectionError = errors.ConnectionError
