#!/usr/bin/python3
"""mysqltalk installer."""

import os
import re
from setuptools import setup, find_packages

REQUIREMENTS = [
    'PyMySQL>=1.1',
    'pytz',
    'SQLAlchemy>=2.0',
]

TEST_REQUIREMENTS = [
    'pytest',
]


def Description():
  """Returns the contents of the README.md file as description information."""
  with open(os.path.join(os.path.dirname(__file__), 'README.md')) as r_file:
    return r_file.read()


def Version():
  """Returns the version of the library as read from the __init__.py file"""
  main_lib = os.path.join(os.path.dirname(__file__), 'mysqltalk', '__init__.py')
  with open(main_lib) as v_file:
    return re.match(".*__version__ = '(.*?)'", v_file.read(), re.S).group(1)


setup(
    name='mysqltalk',
    version=Version(),
    description='MySQL convenience layer: statements from dictionaries, '
                'on connections and transactions',
    long_description=Description(),
    long_description_content_type='text/markdown',
    license='ISC',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: ISC License (ISCL)',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Database',
    ],
    keywords='mysql pymysql sql insert update transaction',
    packages=find_packages(exclude=['test', 'test.*']),
    install_requires=REQUIREMENTS,
    extras_require={'test': TEST_REQUIREMENTS},
    python_requires='>=3.8')
