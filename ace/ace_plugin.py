"""
The ACE plugin: owns the per-client sessions and registers the eval and
context commands with the server it is loaded into.
"""
import logging
from typing import Optional

from ace.ace_commands import ContextCommand, EvalCommand
from ace.ace_config import AceConfig, default_config
from ace.ace_session import Session, SessionRegistry

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class ACE:
    def __init__(self, game, config: Optional[AceConfig] = None):
        self.game = game
        self.config = config or default_config()
        self.sessions = SessionRegistry(game, self.config)
        self.eval_command = EvalCommand(self.sessions, self.config)
        self.context_command = ContextCommand(self.sessions, self.config)

    def on_server_starting(self):
        manager = self.game.command_manager
        manager.register(self, self.eval_command, *self.config.aliases("eval"))
        manager.register(self, self.context_command, *self.config.aliases("context"))
        # Disconnects drop the client's session right away
        self.game.on_disconnect(self.sessions.discard)
        logger.info("Loaded ACE v%s", VERSION)

    def get_session(self, source) -> Session:
        return self.sessions.get_or_create(source)
