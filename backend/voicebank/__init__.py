"""
Voicebank Installer
===================
Imports third-party voicebank archives (legacy encodings, UTAU control
files) into a normalized tree with short, ASCII-only, hashed paths.

Modules:
- installer.py: the import pass (detect, route, parse, write)
- paths.py: structure-preserving path hashing
- encoding.py: archive filename encoding detection
- parsers.py: oto.ini, character.txt and prefix.map parsers
- router.py: per-entry routing rules
- writer.py: JSON record and file writer
- archive.py: zip archive access
- library.py: listing installed voicebanks
"""

__version__ = "1.0.0"
__author__ = "Voicebank Installer"

from .errors import ConfigurationError, DetectionError, VoicebankError
from .installer import InstallReport, VoicebankInstaller, install_voicebank
from .paths import hash_path
