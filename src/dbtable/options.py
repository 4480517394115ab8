from dataclasses import dataclass

from dbtable.strategy import get_available_dialects, get_strategy_class
from dbtable.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `mysql`

    Connection retry options:
    - connect_retries: Attempts made to open the connection (default: 3)
    - connect_retry_delay: Seconds before the first retry, growing 1.5x per attempt (default: 1)
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 3306
    timeout: int = 0
    charset: str = 'utf8mb4'
    appname: str = None
    connect_retries: int = 3
    connect_retry_delay: float = 1.0

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        if self.connect_retries < 1:
            raise ValueError('connect_retries must be at least 1')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
