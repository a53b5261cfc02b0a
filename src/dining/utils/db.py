import threading
from collections import defaultdict
from contextlib import contextmanager

from protean.domain import Domain
from protean.utils.globals import current_domain
from sqlalchemy import create_engine, text

# Providers whose SQL dialect supports SELECT ... FOR UPDATE
_ROW_LOCKING_PROVIDERS = ("postgresql",)

# One writer at a time per provider that cannot lock rows
_WRITER_LOCKS = defaultdict(threading.Lock)


def setup_db(domain: Domain):
    """Setup database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                # Accessing _dao forces the database model to be built and
                # registered with the provider's SQLAlchemy metadata.
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)


def lock_row(aggregate_cls, identifier) -> bool:
    """Hold an exclusive row lock on one aggregate record until the unit of work ends.

    Must be called from inside a command handler so that the lock shares the
    unit of work's session and is released by its commit or rollback. On
    providers without row locks (memory, sqlite) the call is a no-op and
    returns False; callers wrap the unit of work in ``serialized_writes``.
    """
    provider = _provider_for(aggregate_cls)
    if provider.conn_info["provider"] not in _ROW_LOCKING_PROVIDERS:
        return False

    session = current_domain.repository_for(aggregate_cls)._dao._get_session()
    session.execute(
        text(f'SELECT id FROM "{aggregate_cls.meta_.schema_name}" WHERE id = :id FOR UPDATE'),
        {"id": str(identifier)},
    )
    return True


def _provider_for(aggregate_cls):
    return current_domain.providers[aggregate_cls.meta_.provider]


@contextmanager
def serialized_writes(aggregate_cls):
    """Run the enclosed unit of work alone on providers without row locks.

    The memory provider works on a private copy of the whole store and swaps
    it in on commit, and sqlite only locks at the file level, so neither
    notices two units of work that read the same row. Wrap the whole
    ``current_domain.process`` call: the lock must be held before the unit of
    work first touches the repository and until it has committed. PostgreSQL
    relies on ``lock_row`` instead, and the block runs unguarded there.
    """
    provider = _provider_for(aggregate_cls)
    if provider.conn_info["provider"] in _ROW_LOCKING_PROVIDERS:
        yield False
        return

    with _WRITER_LOCKS[provider.name]:
        yield True
