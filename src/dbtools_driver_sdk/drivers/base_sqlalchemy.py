import asyncio
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from dbtools_driver_sdk.driver import AbstractDriver
from dbtools_driver_sdk.errors import DriverConnectionError
from dbtools_driver_sdk.models import QueryOptions, QueryResult


class BaseSQLAlchemyDriver(AbstractDriver[Engine]):
    """
    Base class for drivers backed by a SQLAlchemy engine.
    Implements connection handling and statement execution; subclasses provide
    the URL, the query generator and any explorer hooks.
    """

    def build_url(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must implement build_url()")

    def engine_options(self) -> Dict[str, Any]:
        return {"pool_pre_ping": True}

    def split_statements(self, query: str) -> List[str]:
        """Split a script into statements. The default runs it as one statement."""
        return [query] if query.strip() else []

    async def open(self) -> Engine:
        return await self._open_once(self._connect)

    async def close(self) -> None:
        await self._close_once(self._dispose)

    async def _connect(self) -> Engine:
        engine: Optional[Engine] = None
        try:
            engine = create_engine(self.build_url(), **self.engine_options())
            await asyncio.to_thread(self._ping, engine)
        except SQLAlchemyError as e:
            self.log.error(f"Failed to connect to {self}: {e}")
            if engine is not None:
                await self._dispose(engine)
            raise DriverConnectionError(f"Failed to connect to {self}: {e}", details=e) from e
        return engine

    @staticmethod
    def _ping(engine: Engine) -> None:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    @staticmethod
    async def _dispose(engine: Engine) -> None:
        await asyncio.to_thread(engine.dispose)

    async def query(
        self, query: Union[str, Sequence[str]], opt: Optional[QueryOptions] = None
    ) -> List[QueryResult]:
        opt = opt or QueryOptions()
        statements = self.split_statements(query) if isinstance(query, str) else list(query)
        engine = await self.open()

        results = []
        for statement in statements:
            results.append(await asyncio.to_thread(self._execute, engine, statement, opt))
        return results

    def _execute(self, engine: Engine, statement: str, opt: QueryOptions) -> QueryResult:
        meta = {
            "connection_id": opt.connection_id or self.get_id(),
            "request_id": opt.request_id,
            "result_id": str(uuid.uuid4()),
        }
        try:
            with engine.begin() as conn:
                result = conn.exec_driver_sql(statement)
                if result.returns_rows:
                    cols = list(result.keys())
                    rows = [dict(row._mapping) for row in result]
                    message = f"Query returned {len(rows)} rows."
                else:
                    cols, rows = [], []
                    message = f"{result.rowcount} rows were affected."
        except SQLAlchemyError as e:
            self.log.warning(f"Statement failed on {self}: {e}")
            return QueryResult.failure(statement, e, **meta)

        return QueryResult(
            query=statement,
            cols=cols,
            results=rows,
            messages=[self.prepare_message(message)],
            **meta,
        )
