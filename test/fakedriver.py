"""In-memory stand-in for PyMySQL connections, for the offline tests.

A FakeServer hands out FakeConnection objects in place of pymysql.connect and
records everything that is done with them. Responses for upcoming statements
are queued with Respond(), failures with Fail().
"""

# Standard modules
import collections
import unittest.mock

Response = collections.namedtuple(
    'Response', ('fields', 'rows', 'affected', 'insertid', 'error'))


class FakeCursor(object):
  def __init__(self, connection):
    self.connection = connection
    self.description = None
    self.rowcount = -1
    self.lastrowid = None
    self.closed = False
    self._rows = ()

  def execute(self, query, args=None):
    server = self.connection.server
    self.connection.calls.append('execute')
    server.executed.append((query, args))
    if server.responses:
      response = server.responses.popleft()
    else:
      response = Response((), (), 0, 0, None)
    if response.error is not None:
      raise response.error
    if response.fields:
      self.description = tuple(
          (name, None, None, None, None, None, None) for name in response.fields)
    self._rows = tuple(response.rows)
    self.rowcount = len(self._rows) if response.fields else response.affected
    self.lastrowid = response.insertid
    return self.rowcount

  def fetchall(self):
    return self._rows

  def close(self):
    self.closed = True


class FakeConnection(object):
  def __init__(self, server, arguments):
    self.server = server
    self.arguments = arguments
    self.calls = []
    self.closed = False

  def begin(self):
    self.calls.append('begin')
    self._MaybeFail('begin')

  def commit(self):
    self.calls.append('commit')
    self._MaybeFail('commit')

  def rollback(self):
    self.calls.append('rollback')
    self._MaybeFail('rollback')

  def close(self):
    self.calls.append('close')
    self.closed = True

  def cursor(self):
    return FakeCursor(self)

  def _MaybeFail(self, method):
    error = self.server.method_errors.pop(method, None)
    if error is not None:
      raise error


class FakeServer(object):
  """Replaces pymysql.connect for the duration of a `with` block."""

  def __init__(self):
    self.connections = []
    self.executed = []
    self.responses = collections.deque()
    self.method_errors = {}
    self.connect_error = None
    self._patcher = unittest.mock.patch('pymysql.connect', self.Connect)

  def __enter__(self):
    self._patcher.start()
    return self

  def __exit__(self, *_exc_info):
    self._patcher.stop()

  def Connect(self, **arguments):
    if self.connect_error is not None:
      raise self.connect_error
    connection = FakeConnection(self, arguments)
    self.connections.append(connection)
    return connection

  def Respond(self, fields=(), rows=(), affected=0, insertid=0):
    """Queues the result for the next statement."""
    self.responses.append(Response(fields, rows, affected, insertid, None))

  def Fail(self, error):
    """Makes the next statement raise the given error."""
    self.responses.append(Response((), (), 0, 0, error))

  def FailOn(self, method, error):
    """Makes the next call to begin, commit or rollback raise the error."""
    self.method_errors[method] = error

  @property
  def last_query(self):
    return self.executed[-1]
