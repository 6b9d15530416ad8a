#!/usr/bin/python3
"""Easy use MySQL convenience layer.

Builds INSERT, INSERT IGNORE, REPLACE, UPDATE and DELETE statements from
dictionaries, executes them and returns insert IDs or affected row counts.
The same operations are available on a connection and on a transaction.

example usage:

  import mysqltalk
  connection = mysqltalk.Connect('localhost', 'user', 'secret', 'shop', 'utf8mb4')
  author = connection.Insert({'name': 'Elmer'}, 'author')
  with connection as transaction:
    transaction.Update({'name': 'Jan'}, 'author', 'ID = ?', author)
  row = connection.QueryOne('SELECT * FROM author WHERE ID = ?', author).Scan()

Functions:
  Connect: Sets up a connection object for a MySQL server.
  ConnectFromConfig: Same, reading the settings from an INI file.
"""
__version__ = '1.0.0'

# Application specific modules
from . import connection
from . import options
from .errors import (Error, ConnectionError, QueryError, NoRowsError, ExecError,
                     TransactionError, CommitError, RollbackError, CloseError,
                     InvalidStateError, StatementError, IdentifierError)


def Connect(host, username, password, dbname, charset='utf8mb4',
            custom_options=None, debug=False):
  """Factory function for connection.Connection.

  Refer to the documentation of connection.Connection for argument information.
  """
  return connection.Connection(host, username, password, dbname,
                               charset=charset, custom_options=custom_options,
                               debug=debug)


def ConnectFromConfig(path, section='mysql'):
  """Connects using the settings in the given section of an INI file."""
  return Connect(**options.ReadConfig(path, section))
