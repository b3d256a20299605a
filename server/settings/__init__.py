"""Django settings for the cloud drive project.

Settings are split into components which are merged together with
``django-split-settings``. Every value that differs between environments
is read through ``python-decouple``.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/drive.py',
)
