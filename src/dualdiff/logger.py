"""Contains the logger of the :mod:`dualdiff` modules.

``dualdiff`` only emits ``DEBUG`` messages and never installs handlers. Calling
applications can display them by configuring logging, e.g.::

    >>> import logging
    >>> logging.basicConfig(format="%(name)s | %(levelname)s | %(message)s")
    >>> dualdiff_logger.setLevel(logging.DEBUG)
"""

import logging

logger_name = "dualdiff"
dualdiff_logger = logging.getLogger(logger_name)
