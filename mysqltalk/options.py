#!/usr/bin/python3
"""Connection option handling.

Options are kept as a flat dictionary of name to value, using the option names
of the MySQL data source name notation (`parseTime`, `readTimeout`, ...). Values
may be given as strings, as they would appear in a DSN or configuration file,
or as native Python values.

Functions:
  DefaultOptions: The default option set for a given character set.
  MergeOptions: Default options updated with custom ones.
  ConnectArguments: Translates options into PyMySQL connect arguments.
  ReadConfig: Reads connection settings from an INI file.
"""
__version__ = '0.3'

# Standard modules
import configparser
import datetime
import re

# Third-party modules
import pytz
from pymysql.constants import CLIENT

# Application specific modules
from . import converters
from . import errors
from . import statement

DEFAULT_READ_TIMEOUT = '30m'
DEFAULT_WRITE_TIMEOUT = '1m'
CONFIG_KEYS = 'host', 'user', 'password', 'database', 'charset', 'debug'
DURATION_UNITS = {'h': 3600, 'm': 60, 's': 1, 'ms': 1e-3,
                  'us': 1e-6, 'µs': 1e-6, 'ns': 1e-9}
DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(h|ms|m|s|us|µs|ns)')
BOOLEANS = {'true': True, '1': True, 'false': False, '0': False}


def DefaultOptions(charset):
  """Returns the default option set for the given character set."""
  return {'charset': charset,
          'parseTime': 'true',
          'readTimeout': DEFAULT_READ_TIMEOUT,
          'writeTimeout': DEFAULT_WRITE_TIMEOUT,
          'allowNativePasswords': 'true'}


def MergeOptions(charset, custom_options=None):
  """Returns the default options, with entries in custom_options overriding."""
  options = DefaultOptions(charset)
  if custom_options:
    options.update(custom_options)
  return options


def ParseBool(name, value):
  """Returns the boolean value of an option.

  Raises:
    ConnectionError: The value is not one of true, false, 1 or 0.
  """
  if isinstance(value, bool):
    return value
  try:
    return BOOLEANS[str(value).strip().lower()]
  except KeyError:
    raise errors.ConnectionError(
        'Option %r expects a boolean, got %r.' % (name, value))


def ParseDuration(value, name='duration'):
  """Returns a duration in seconds.

  Accepts numbers (seconds), timedelta objects, and duration strings made up
  of one or more <number><unit> parts, such as '30m', '1h30m' or '250ms'.

  Raises:
    ConnectionError: The value cannot be read as a duration.
  """
  if isinstance(value, datetime.timedelta):
    return value.total_seconds()
  if isinstance(value, (int, float)) and not isinstance(value, bool):
    return float(value)
  text = str(value).strip()
  try:
    return float(text)
  except ValueError:
    pass
  sign = -1 if text.startswith('-') else 1
  text = text.lstrip('+-')
  position = 0
  seconds = 0.0
  for match in DURATION_PART.finditer(text):
    if match.start() != position:
      break
    seconds += float(match.group(1)) * DURATION_UNITS[match.group(2)]
    position = match.end()
  if not text or position != len(text):
    raise errors.ConnectionError(
        'Option %r expects a duration, got %r.' % (name, value))
  return sign * seconds


def SplitHost(host):
  """Returns PyMySQL address arguments for a host specification.

  Accepted forms are 'hostname', 'hostname:port', '[ipv6]:port', a bare IPv6
  address, and a unix socket path (anything starting with a slash).
  """
  if not host:
    return {'host': 'localhost'}
  if host.startswith('/'):
    return {'unix_socket': host}
  if host.startswith('['):
    address, _bracket, port = host[1:].partition(']')
    port = port.lstrip(':')
  elif host.count(':') == 1:
    address, _colon, port = host.partition(':')
  else:
    address, port = host, ''
  arguments = {'host': address}
  if port:
    try:
      arguments['port'] = int(port)
    except ValueError:
      raise errors.ConnectionError('Bad port in host %r.' % host)
  return arguments


def ConnectArguments(host, username, password, dbname, options):
  """Translates merged options into keyword arguments for pymysql.connect.

  Options that are not recognised are treated as session system variables and
  are set on every new connection through its init command.

  Raises:
    ConnectionError: An option has a bad value or cannot be supported.
  """
  options = dict(options)
  arguments = SplitHost(host)
  # Statements outside an explicit transaction take effect immediately.
  arguments.update(user=username, password=password or '', database=dbname,
                   charset=options.pop('charset', None) or 'utf8mb4',
                   autocommit=True)
  if not ParseBool('allowNativePasswords',
                   options.pop('allowNativePasswords', True)):
    raise errors.ConnectionError(
        'PyMySQL does not support disabling native password authentication.')

  try:
    location = converters.Location(options.pop('loc', 'UTC'))
  except pytz.UnknownTimeZoneError as error:
    raise errors.ConnectionError('Unknown time zone for loc: %s.' % error)
  arguments['conv'] = converters.Conversions(
      parse_time=ParseBool('parseTime', options.pop('parseTime', True)),
      location=location)

  for option, argument in (('readTimeout', 'read_timeout'),
                           ('writeTimeout', 'write_timeout'),
                           ('timeout', 'connect_timeout')):
    if option in options:
      # PyMySQL has no notion of a zero timeout, it means no timeout at all.
      arguments[argument] = ParseDuration(options.pop(option), option) or None
  if ParseBool('clientFoundRows', options.pop('clientFoundRows', False)):
    arguments['client_flag'] = CLIENT.FOUND_ROWS
  if 'collation' in options:
    arguments['collation'] = options.pop('collation')

  if options:
    arguments['init_command'] = SystemVariables(options)
  return arguments


def SystemVariables(variables):
  """Returns a SET statement for the given session system variables.

  Values are used as literal SQL, as they are in a data source name; string
  values therefore need their own quotes ("sql_mode": "'ANSI_QUOTES'").
  """
  assignments = []
  for name, value in sorted(variables.items()):
    try:
      statement.EscapeField(name)
    except errors.IdentifierError:
      raise errors.ConnectionError('Bad system variable name: %r.' % name)
    assignments.append('%s=%s' % (name, value))
  return 'SET ' + ', '.join(assignments)


def ReadConfig(path, section='mysql'):
  """Reads connection settings from an INI file.

  The section may hold the keys host, user, password, database, charset and
  debug. Any other key in the section is passed on as a custom option.

  Returns:
    dict: Keyword arguments for mysqltalk.Connect.

  Raises:
    ConnectionError: The file or section could not be read.
  """
  parser = configparser.ConfigParser(interpolation=None)
  parser.optionxform = str  # Option names like parseTime are case sensitive.
  if not parser.read(path):
    raise errors.ConnectionError('Could not read configuration file %r.' % path)
  try:
    settings = dict(parser.items(section))
  except configparser.NoSectionError:
    raise errors.ConnectionError('No section %r in %r.' % (section, path))
  return {'host': settings.pop('host', 'localhost'),
          'username': settings.pop('user', None),
          'password': settings.pop('password', None),
          'dbname': settings.pop('database', ''),
          'charset': settings.pop('charset', 'utf8mb4'),
          'debug': ParseBool('debug', settings.pop('debug', False)),
          'custom_options': settings}
