from sqlalchemy import create_engine, select, func, event
from sqlalchemy.orm import sessionmaker
from typing import Type, TypeVar, List, Optional, Dict, Any

from ..store import SqlBase, Table, LogStore
from .. import utils
from .. import secret

T = TypeVar('T', bound=Table)

def _enable_sqlite_fk(dbapi_conn: Any, _record: Any) -> None:
    # sqlite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_conn.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()

class Database:
    """Data-access object shared by every service.

    Built once at process start and handed to the services that need it.
    """

    def __init__(self, process_name: str, db_connector: str):
        self.process_name: str = process_name

        engine_args: Dict[str, Any] = {}
        if db_connector.startswith('sqlite'):
            engine_args['connect_args'] = {'check_same_thread': False}
        else:
            # https://docs.sqlalchemy.org/en/20/core/pooling.html#using-fifo-vs-lifo
            engine_args.update(pool_size=2, pool_use_lifo=True)

        self.engine = create_engine(db_connector, future=True, pool_pre_ping=True, **engine_args)
        if self.engine.dialect.name=='sqlite':
            event.listen(self.engine, 'connect', _enable_sqlite_fk)

        self.SqlSession = sessionmaker(self.engine, expire_on_commit=False, future=True)

    def create_tables(self) -> None:
        SqlBase.metadata.create_all(self.engine)
        self.log('debug', 'base.create_tables', f'tables ready on {self.engine.url.render_as_string(hide_password=True)}')

    def log(self, level: utils.LogLevel, module: str, message: str) -> None:
        if level in secret.STDOUT_LOG_LEVEL:
            print(f'{self.process_name} [{level}] {module}: {message}')

        if level in secret.DB_LOG_LEVEL:
            with self.SqlSession() as session:
                log = LogStore(level=level, process=self.process_name, module=module, message=message)
                session.add(log)
                session.commit()

    def load_all_data(self, cls: Type[T]) -> List[T]:
        with self.SqlSession() as session:
            return list(session.execute(select(cls).order_by(cls.id)).scalars().all())

    def load_one_data(self, cls: Type[T], id: int) -> Optional[T]:
        with self.SqlSession() as session:
            return session.execute(select(cls).where(cls.id==id)).scalar()

    def count(self, cls: Type[T]) -> int:
        with self.SqlSession() as session:
            return session.execute(select(func.count()).select_from(cls)).scalar_one()
