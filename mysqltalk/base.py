#!/usr/bin/python3
"""Operations shared by the connection and transaction facades.

BaseFacade implements every statement operation on top of a single capability
that subclasses provide: _PhysicalConnection(), a context manager that yields
a DB-API connection to execute on.
"""
__version__ = '0.5'

# Third-party modules
import pymysql

# Application specific modules
from . import errors
from . import sqlresult
from . import statement


class BaseFacade(object):
  """Query and mutating statement operations.

  Subclasses provide `logger` and implement _PhysicalConnection and _LogQuery.
  """

  def Query(self, sql, *args):
    """Executes a reading statement and returns its rows.

    Arguments:
      @ sql: str
        SQL text, values are bound positionally to `?` placeholders.
      @ *args: object
        Values for the placeholders.

    Returns:
      sqlresult.ResultSet: The rows returned by the statement.

    Raises:
      QueryError: The server or driver rejected the statement.
    """
    return self._Execute(statement.SelectStatement(sql, args), errors.QueryError)

  def QueryOne(self, sql, *args):
    """Executes a reading statement and returns a handle to its first row.

    This never raises; any failure is reported by the Scan() method of the
    returned sqlresult.SingleRow.
    """
    try:
      return sqlresult.SingleRow(result=self.Query(sql, *args))
    except errors.Error as error:
      return sqlresult.SingleRow(error=error)

  def Insert(self, fields, table):
    """Inserts a new row into table and returns its auto-increment ID.

    Arguments:
      @ fields: mapping
        Field names and values of the new row.
      @ table: str
        Name of the table to insert into.

    Raises:
      ExecError: The server or driver rejected the statement.
    """
    return self._Insert('INSERT', fields, table)

  def InsertIgnore(self, fields, table):
    """Inserts a new row, skipping it if it conflicts with a unique key.

    Returns the auto-increment ID of the new row, 0 if it was skipped.
    """
    return self._Insert('INSERT IGNORE', fields, table)

  Ignore = InsertIgnore

  def Replace(self, fields, table):
    """Inserts a new row, replacing any row that conflicts with a unique key."""
    return self._Insert('REPLACE', fields, table)

  def Update(self, fields, table, where, *where_args):
    """Updates rows in table that match the where clause.

    Arguments:
      @ fields: mapping
        Field names and their new values.
      @ table: str
        Name of the table to update.
      @ where: str
        Raw SQL condition, THIS IS NOT ESCAPED. Use `?` placeholders for values.
      @ *where_args: object
        Values for the placeholders in `where`.

    Returns:
      int: The number of affected rows.

    Raises:
      ExecError: The server or driver rejected the statement.
    """
    return self._Execute(
        statement.UpdateStatement(fields, table, where, where_args),
        errors.ExecError).affected

  def Delete(self, table, where, *where_args):
    """Deletes rows from table that match the where clause.

    Returns:
      int: The number of deleted rows.
    """
    return self._Execute(
        statement.DeleteStatement(table, where, where_args),
        errors.ExecError).affected

  def _Insert(self, verb, fields, table):
    return self._Execute(statement.InsertStatement(verb, fields, table),
                         errors.ExecError).insertid

  def _Execute(self, sql_statement, error_class):
    """Actually executes the statement and returns the result of it.

    Arguments:
      @ sql_statement: statement.Statement
        Statement text with `?` placeholders and the values to bind.
      @ error_class: errors.StatementFailure subclass
        Raised, chained to the driver error, when execution fails.

    Returns:
      sqlresult.ResultSet instance holding all query result data.
    """
    query, params = statement.Prepare(sql_statement)
    with self._PhysicalConnection() as connection:
      self._LogQuery(sql_statement)
      cursor = connection.cursor()
      try:
        cursor.execute(query, params)
        rows = cursor.fetchall()
        fields = [column[0] for column in cursor.description or ()]
        return sqlresult.ResultSet(
            query=sql_statement.text, params=params, result=rows,
            fields=fields, affected=cursor.rowcount, insertid=cursor.lastrowid)
      except pymysql.Error as error:
        self.logger.warning('Statement failed: %s\nQuery: %s',
                            error, sql_statement.text)
        raise error_class(str(error), query=sql_statement.text, params=params,
                          errno=errors.DriverErrno(error)) from error
      finally:
        cursor.close()

  def _PhysicalConnection(self):
    raise NotImplementedError

  def _LogQuery(self, sql_statement):
    raise NotImplementedError

  # Error classes, available on the facades for convenience.
  Error = errors.Error
  QueryError = errors.QueryError
  NoRowsError = errors.NoRowsError
  ExecError = errors.ExecError
  StatementError = errors.StatementError
  InvalidStateError = errors.InvalidStateError
