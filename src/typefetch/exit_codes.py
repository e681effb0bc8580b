"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~typefetch.exceptions.TypeFetchError` subclass.
The ``typefetch`` command exits with the code of the error carried by a
failed :class:`~typefetch.models.Result`, so shell wrappers can tell an
HTTP error from a network failure without parsing stderr.

Example::

    $ typefetch get https://api.example.com/missing
    $ echo $?
    5   # EXIT_HTTP_ERROR -- the server answered with a non-2xx status
"""

EXIT_SUCCESS = 0
"""The request completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The request body or command arguments were invalid."""

EXIT_HTTP_ERROR = 5
"""The remote server returned a non-2xx HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred and the retry budget was exhausted."""
