"""gantry - A build-script runner for Python target files."""

from .cache import CacheStatus as CacheStatus
from .cache import ScriptCache as ScriptCache
from .context import Context as Context
from .context import Verbosity as Verbosity
from .dispatch import Dispatcher as Dispatcher
from .environment import Environment as Environment
from .environment import format_message as format_message
from .errors import CompilationError as CompilationError
from .errors import ConfigurationError as ConfigurationError
from .errors import EvaluationError as EvaluationError
from .errors import ExitCode as ExitCode
from .errors import GantryError as GantryError
from .errors import MissingBindingError as MissingBindingError
from .errors import TargetExecutionError as TargetExecutionError
from .loader import ScriptLoader as ScriptLoader
from .loader import ScriptUnit as ScriptUnit
from .targets import Target as Target
from .targets import TargetRegistry as TargetRegistry
from .tasks import TaskRunner as TaskRunner
