# app/infrastructure/persistence/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

import config

Base = declarative_base()

# Opción de ejecución con la que una transacción declara que va a escribir
WRITE_INTENT = "write_intent"


def build_engine(database_url: str, timeout_seconds: float = config.STORAGE_TIMEOUT_SECONDS) -> Engine:
    """
    Crea el engine con un tiempo máximo de espera para bloqueos y sentencias.
    En SQLite las transacciones de escritura arrancan con BEGIN IMMEDIATE,
    lo que serializa a los escritores (incluida la asignación de correlativos);
    las de solo lectura usan BEGIN y no esperan a un escritor en curso.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # Desactiva el manejo de transacciones del driver; lo hacemos en "begin"
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(connection):
            if connection.get_execution_options().get(WRITE_INTENT):
                connection.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                connection.exec_driver_sql("BEGIN")

        return engine

    timeout_ms = int(timeout_seconds * 1000)
    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}"
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_timeout=timeout_seconds,
        pool_pre_ping=True,
    )


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
