#!/usr/bin/python3
"""Statement building for the mysqltalk facades.

Statements are built with `?` placeholders, and translated to the `%s` format
PyMySQL expects just before they are handed to the driver.

example usage:

  >>> InsertStatement('INSERT', {'name': 'Elmer'}, 'author')
  Statement(text='INSERT INTO `author` SET `name` = ?', values=('Elmer',))
"""
__version__ = '0.4'

# Standard modules
import collections
import re

# Application specific modules
from . import errors

INSERT_VERBS = 'INSERT', 'INSERT IGNORE', 'REPLACE'
IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_$]*$')
QUOTES = '\'"`'

Statement = collections.namedtuple('Statement', ('text', 'values'))


def EscapeField(field):
  """Returns a backtick quoted table or field name.

  Dotted names (`database.table`) have each part quoted separately. Only plain
  identifiers are accepted, since these names end up in the SQL text itself
  rather than being bound as values.

  Raises:
    IdentifierError: The name, or one of its dotted parts, is not acceptable.
  """
  if not isinstance(field, str) or not field:
    raise errors.IdentifierError('Bad identifier: %r.' % (field,))
  parts = field.split('.')
  for part in parts:
    if not IDENTIFIER.match(part):
      raise errors.IdentifierError('Bad identifier: %r.' % field)
  return '.'.join('`%s`' % part for part in parts)


def SetClause(fields):
  """Returns the assignment terms and the values that belong to them.

  Both lists are filled in the same pass over `fields`, so the N-th term is
  always bound to the N-th value, whatever the iteration order of the mapping.

  Arguments:
    @ fields: mapping
      Field names and the values to assign to them.

  Returns:
    tuple: (list of `field` = ? terms, list of values)
  """
  if not fields:
    raise errors.StatementError('Must provide 1 or more field to set.')
  terms = []
  values = []
  for field, value in fields.items():
    terms.append('%s = ?' % EscapeField(field))
    values.append(value)
  return terms, values


def InsertStatement(verb, fields, table):
  """Builds an INSERT, INSERT IGNORE or REPLACE statement.

  Arguments:
    @ verb: str
      One of INSERT_VERBS.
    @ fields: mapping
      Field names and their values for the new row.
    @ table: str
      Name of the table to insert into.

  Returns:
    Statement: The statement text and its bound values.
  """
  if verb not in INSERT_VERBS:
    raise errors.StatementError('Unknown insert verb: %r.' % verb)
  terms, values = SetClause(fields)
  return Statement('%s INTO %s SET %s' % (
      verb, EscapeField(table), ', '.join(terms)), tuple(values))


def UpdateStatement(fields, table, where, where_args=()):
  """Builds an UPDATE statement.

  The `where` clause is raw SQL and may contain its own `?` placeholders, the
  values for those are bound after the values of the SET clause.
  """
  terms, values = SetClause(fields)
  values.extend(where_args)
  return Statement('UPDATE %s SET %s WHERE %s' % (
      EscapeField(table), ', '.join(terms), _WhereClause(where)), tuple(values))


def DeleteStatement(table, where, where_args=()):
  """Builds a DELETE statement, binding `where_args` to the `where` clause."""
  return Statement('DELETE FROM %s WHERE %s' % (
      EscapeField(table), _WhereClause(where)), tuple(where_args))


def SelectStatement(sql, args=()):
  """Wraps caller provided SQL and its arguments, unmodified."""
  return Statement(sql, tuple(args))


def ToDriverFormat(text):
  """Translates `?` placeholders to the `%s` format used by PyMySQL.

  Question marks inside quoted strings, backticked names and comments are left
  alone. Literal percent signs are doubled everywhere, since PyMySQL
  interpolates the whole statement text with the Python formatting operator.

  Returns:
    tuple: (translated text, number of placeholders found)
  """
  output = []
  placeholders = 0
  quote = None
  index = 0
  while index < len(text):
    char = text[index]
    comment_end = None if quote else _CommentEnd(text, index)
    if comment_end is not None:
      output.append(text[index:comment_end].replace('%', '%%'))
      index = comment_end
      continue
    if char == '%':
      output.append('%%')
    elif quote:
      output.append(char)
      if char == '\\' and quote != '`' and index + 1 < len(text):
        index += 1
        output.append('%%' if text[index] == '%' else text[index])
      elif char == quote:
        quote = None
    elif char in QUOTES:
      quote = char
      output.append(char)
    elif char == '?':
      placeholders += 1
      output.append('%s')
    else:
      output.append(char)
    index += 1
  return ''.join(output), placeholders


def Prepare(statement):
  """Returns the driver formatted query text and its argument tuple.

  Raises:
    StatementError: The number of placeholders and values do not match.
  """
  query, placeholders = ToDriverFormat(statement.text)
  values = len(statement.values)
  if placeholders != values:
    raise errors.StatementError(
        'Statement has %d placeholder%s but %d value%s %s given: %s' % (
            placeholders, 's'[placeholders == 1:],
            values, 's'[values == 1:], 'was' if values == 1 else 'were',
            statement.text))
  return query, tuple(statement.values)


def _CommentEnd(text, index):
  """Returns the index just past the comment starting at `index`, or None when
  no comment starts there.

  MySQL executes `/*! ... */` comments, so those are not skipped.
  """
  if text.startswith('/*', index) and not text.startswith('/*!', index):
    end = text.find('*/', index + 2)
    return len(text) if end == -1 else end + 2
  if text.startswith('#', index) or (
      text.startswith('--', index) and
      (index + 2 == len(text) or text[index + 2].isspace())):
    end = text.find('\n', index)
    return len(text) if end == -1 else end
  return None


def _WhereClause(where):
  if not where or not where.strip():
    raise errors.StatementError('A WHERE clause is required.')
  return where
