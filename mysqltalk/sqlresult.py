#!/usr/bin/python3
"""SQL result abstraction module.

Classes:
  ResultRow: Dict-like object that represents a single database result row.
  ResultSet: Abstraction for a database resultset.
  SingleRow: Deferred access to the first row of a query.

Error Classes:
  FieldError: Field- index or name does not exist.
"""
__version__ = '1.5'

# Application specific modules
from . import errors


class FieldError(errors.Error, LookupError):
  """Field- index or name does not exist."""


class ResultRow(object):
  """SQL Result row - an ordered dictionary-like record abstraction.

  ResultRow has two item retrieval interfaces:
    1) Key-based access like that of a dictionary.
    2) Indexed access like a tuple. (field-order is preserved)

  Members:
    % names: list (read-only)
      Names for the fields that the ResultRow contains.
  """
  # We expect many ResultRow instances, __slots__ cuts the memory footprint
  # in half for small rows.
  __slots__ = ('_fields', '_values')

  def __init__(self, fields, values):
    """Sets up the ordered dict.

    Arguments:
      @ fields: iterable
        Fieldnames for the SQL result
      @ values: iterable
        Values that belong to the provided fields
    """
    self._fields = list(fields)
    self._values = list(values)

  def __eq__(self, other):
    """A ResultRow is only equal to another ResultRow with the same fieldnames
    and fieldvalues (data and order)."""
    return isinstance(other, type(self)) and (
        list(self.items()) == list(other.items()))

  def __getitem__(self, key):
    try:
      if isinstance(key, int):
        return self._values[key]
      return self._values[self._fields.index(key)]
    except (LookupError, ValueError) as message:
      raise FieldError(message)

  def __repr__(self):
    return '%s(%s)' % (self.__class__.__name__,
                       ', '.join('%s=%r' % item for item in self.items()))

  def __len__(self):
    return len(self._values)

  def __iter__(self):
    """Returns an iterator for the values of the ResultRow."""
    return iter(self._values)

  def get(self, key, default=None):
    try:
      return self[key]
    except FieldError:
      return default

  def keys(self):
    return self._fields[:]

  def values(self):
    return self._values[:]

  def items(self):
    return zip(self._fields, self._values)

  def AsDict(self):
    """Returns the row as a plain dictionary."""
    return dict(self.items())

  @property
  def names(self):
    return self.keys()


class ResultSet(object):
  """SQL Result set - stores the query, the returned result, and other info.

  Members:
    @ affected - int
      Number of rows affected by the statement.
    @ fields - tuple
      Names of the fields in the result.
    @ insertid - int
      Auto-increment ID that was generated by the statement.
    @ query - str
      The executed query that gave this result set.
    @ params - tuple
      The values that were bound to the query.
    @ result - list
      ResultRow objects for the rows returned.
  """

  def __init__(self, query='', params=(), result=None, fields=(),
               affected=0, insertid=0, row_class=ResultRow):
    self.affected = affected
    self.insertid = insertid
    self.query = query
    self.params = tuple(params)
    self.fields = tuple(fields)
    self.result = [row_class(self.fields, row) for row in result or ()]

  def __eq__(self, other):
    """A ResultSet is only equal to another ResultSet with equal public
    members."""
    if self is other:
      return True
    if isinstance(other, self.__class__):
      return (self.affected == other.affected and
              self.insertid == other.insertid and
              self.fields == other.fields and
              self.result == other.result)
    return False

  def __getitem__(self, item):
    """Returns a row or column from the ResultSet by either index or fieldname.

    Arguments:
      @ item: int / str
        Rownumber or fieldname:
        - If given a rownumber, the corresponding ResultRow is returned.
        - If given a fieldname, a tuple with the field's values is returned.
    """
    if isinstance(item, int):
      try:
        return self.result[item]
      except IndexError:
        raise FieldError('Bad row index: %r.' % item)
    try:
      index = self.fields.index(item)
    except ValueError:
      raise FieldError('Bad field name: %r.' % item)
    return tuple(row[index] for row in self.result)

  def __iter__(self):
    return iter(self.result)

  def __len__(self):
    return len(self.result)

  def __bool__(self):
    """True if the ResultSet has 1+ ResultRow."""
    return bool(self.result)

  def __repr__(self):
    return '%s instance: %d row%s' % (
        self.__class__.__name__, len(self.result), 's'[len(self.result) == 1:])

  @property
  def fieldnames(self):
    """Returns a tuple of the fieldnames that are in this ResultSet."""
    return self.fields


class SingleRow(object):
  """Deferred access to the first row returned by a query.

  Creating a SingleRow never fails; the outcome of the query is only reported
  once the row is read through Scan().
  """

  def __init__(self, result=None, error=None):
    self._result = result
    self._error = error

  def __repr__(self):
    if self._error is not None:
      return '%s(error=%r)' % (self.__class__.__name__, self._error)
    return '%s(%r)' % (self.__class__.__name__, self._result)

  def Scan(self):
    """Returns the first ResultRow of the query.

    Raises:
      QueryError: The query itself failed.
      NoRowsError: The query succeeded but returned no rows.
    """
    if self._error is not None:
      raise self._error
    if not self._result:
      raise errors.NoRowsError(
          'Query returned no rows.',
          query=self._result.query if self._result is not None else None,
          params=self._result.params if self._result is not None else ())
    return self._result[0]
