"""Package emitters, one per output format.

Importing this package registers the bash, zip, and config emitters.
"""

from rulehub.generation.emitters.base import PackageEmitter, get_emitter, list_formats, register_emitter
from rulehub.generation.emitters.archive import ZipArchiveEmitter
from rulehub.generation.emitters.bash import BashScriptEmitter
from rulehub.generation.emitters.config_bundle import ConfigBundleEmitter

__all__ = [
    "PackageEmitter",
    "get_emitter",
    "list_formats",
    "register_emitter",
    "BashScriptEmitter",
    "ZipArchiveEmitter",
    "ConfigBundleEmitter",
]
