"""
Command Dispatcher

Routes classified commands to the connection's store or to the server
configuration and returns the wire value to send back.
"""

import logging

from ..cache.store import KVStore
from ..config.server_config import ServerConfig
from ..protocol.commands import Command, CommandType
from ..protocol.values import EMPTY_ARRAY, OK, PONG, Error, Value, array, bulk

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Executes commands for a single connection.

    Attributes:
        store: The connection-local KVStore
        config: The process-wide, immutable ServerConfig
    """

    def __init__(self, store: KVStore, config: ServerConfig):
        self.store = store
        self.config = config

    def execute(self, command: Command) -> Value:
        """
        Execute a command and build its reply.

        Args:
            command: The classified command

        Returns:
            The reply value
        """
        if command.type == CommandType.PING:
            return PONG

        if command.type == CommandType.ECHO:
            return command.argument

        if command.type == CommandType.SET:
            self.store.set(command.key, command.value, expiry_ms=command.expiry_ms)
            return OK

        if command.type == CommandType.GET:
            return self.store.get(command.key)

        if command.type == CommandType.CONFIG_GET:
            return self._config_get(command.key)

        if command.type == CommandType.KEYS:
            # The pattern is accepted but every key is returned
            return array(bulk(key) for key in self.store.keys())

        logger.warning(f"No handler for command type {command.type}")
        return Error("ERR", f"unhandled command {command.type.name}")

    def _config_get(self, name: str) -> Value:
        value = self.config.get(name)
        if value is None:
            return EMPTY_ARRAY
        return array([bulk(name), bulk(value)])
