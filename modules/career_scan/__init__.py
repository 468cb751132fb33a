# Keep this TINY so importing the package never drags in heavy deps.
from . import lib  # so: from modules.career_scan import lib
from .main import run  # so: from modules.career_scan import run

__all__ = ["lib", "run"]
