from .config import Config, load_config
from .counts import (
    CountSpec,
    CountMaintainer,
    Mutation,
    RowCountMaintainer,
    StatementCountMaintainer,
    TOTAL_SKILLS,
    make_maintainer
)
from .database import DatabaseConnector
from .errors import ConfigError, StaffDBError
from .etl import DataLoader
from .explain import EXPERIMENTS, IndexExperiment, PlanInspector
from .formatters import FORMATTERS, JsonFormatter, TableFormatter, XmlFormatter
from .positions import advertised_positions, join_titles
from .reports import ReportGenerator
from .schema import SchemaManager
from .skills import SkillWriter
