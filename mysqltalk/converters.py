#!/usr/bin/python3
"""Conversion tables handed to PyMySQL for temporal values.

With time parsing enabled, DATETIME and TIMESTAMP columns are returned as
datetime objects aware of the configured location, and aware datetimes that
are written are first normalised to that location (MySQL stores them without
zone information). With time parsing disabled, DATE, DATETIME and TIMESTAMP
columns are returned as their textual representation.
"""
__version__ = '0.2'

# Standard modules
import datetime

# Third-party modules
import pytz
from pymysql import converters
from pymysql.constants import FIELD_TYPE

LOCAL = 'Local'
TEXTUAL_TIME_TYPES = FIELD_TYPE.DATE, FIELD_TYPE.DATETIME, FIELD_TYPE.TIMESTAMP


def Location(name):
  """Returns the pytz time zone for the given name.

  The special name 'Local' returns None, meaning values are left naive and are
  interpreted in the server session's own time zone.

  Raises:
    pytz.UnknownTimeZoneError: The name is not a known time zone.
  """
  if name == LOCAL:
    return None
  return pytz.timezone(name)


def DatetimeDecoder(location):
  """Returns a PyMySQL decoder that attaches `location` to parsed values."""
  def ConvertDatetime(value):
    result = converters.convert_datetime(value)
    if isinstance(result, datetime.datetime):
      return location.localize(result)
    return result  # Zero dates and other unparsable values stay textual.
  return ConvertDatetime


def DatetimeEncoder(location):
  """Returns a PyMySQL encoder that normalises aware datetimes to `location`."""
  def EscapeDatetime(value, mapping=None):
    if value.tzinfo is not None:
      value = value.astimezone(location).replace(tzinfo=None)
    return converters.escape_datetime(value, mapping)
  return EscapeDatetime


def Conversions(parse_time=True, location=pytz.utc):
  """Returns a conversion dictionary suitable for PyMySQL's `conv` argument.

  Arguments:
    % parse_time: bool ~~ True
      Whether temporal columns are decoded to Python objects.
    % location: pytz time zone ~~ pytz.utc
      Zone attached to decoded DATETIME and TIMESTAMP values. None leaves them
      naive.

  Returns:
    dict: Decoders keyed by field type, encoders keyed by Python type.
  """
  conversions = converters.conversions.copy()
  if not parse_time:
    for field_type in TEXTUAL_TIME_TYPES:
      conversions[field_type] = str
  elif location is not None:
    decoder = DatetimeDecoder(location)
    conversions[FIELD_TYPE.DATETIME] = decoder
    conversions[FIELD_TYPE.TIMESTAMP] = decoder
    conversions[datetime.datetime] = DatetimeEncoder(location)
  return conversions
