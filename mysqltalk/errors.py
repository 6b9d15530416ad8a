#!/usr/bin/python3
"""Exception classes raised by the mysqltalk facades.

Classes:
  Error: Exception base class.
  ConnectionError: Connecting failed, or the connection options are invalid.
  QueryError: A reading statement failed.
  NoRowsError: A single row was requested but the query yielded nothing.
  ExecError: A mutating statement failed.
  TransactionError: A transaction could not be started.
  CommitError: A transaction could not be committed.
  RollbackError: A transaction could not be rolled back.
  CloseError: The connection could not be closed.
  InvalidStateError: Operation on a closed connection or finished transaction.
  StatementError: Statement input is malformed.
  IdentifierError: A table or field name is not an acceptable identifier.
"""
__version__ = '0.3'


class Error(Exception):
  """Exception base class."""


class ConnectionError(Error):
  """Error class thrown when the underlying driver fails on connecting, or when
  the connection options cannot be translated for the driver."""


class StatementError(Error, ValueError):
  """Statement input is malformed and was not sent to the server."""


class IdentifierError(StatementError):
  """A table or field name is not an acceptable identifier."""


class StatementFailure(Error):
  """A statement was sent to the server and failed.

  Members:
    @ query: str
      The statement text as handed to the driver.
    @ params: tuple
      The values bound to the statement placeholders.
    @ errno: int or None
      MySQL error number, when the driver provided one.
  """
  def __init__(self, message, query=None, params=(), errno=None):
    super().__init__(message)
    self.query = query
    self.params = tuple(params)
    self.errno = errno


class QueryError(StatementFailure):
  """A reading statement failed."""


class NoRowsError(QueryError):
  """A single row was requested but the query returned no rows."""


class ExecError(StatementFailure):
  """A mutating statement failed."""


class TransactionError(Error):
  """A transaction could not be started."""


class CommitError(TransactionError):
  """A transaction could not be committed."""


class RollbackError(TransactionError):
  """A transaction could not be rolled back."""


class CloseError(Error):
  """The connection could not be closed."""


class InvalidStateError(Error):
  """The connection or transaction is no longer usable."""


def DriverErrno(error):
  """Returns the MySQL error number carried by a PyMySQL exception, if any."""
  if error.args and isinstance(error.args[0], int):
    return error.args[0]
  return None
