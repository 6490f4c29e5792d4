"""
IRC client adapter
------------------
Connects to the configured server with the ``irc`` library and forwards what
it observes to an ``EventListener`` (normally ``historian.core.Historian``).

Protocol handling, TLS and reconnection all belong to the library:

    • SingleServerIRCBot keeps the connection alive with its reconnect strategy.
    • The channel is joined on every welcome.
    • Lines are decoded as UTF-8, replacing undecodable bytes.
"""

from __future__ import annotations

import functools
import ssl
from typing import Optional

import irc.bot
import irc.client
import irc.connection
from jaraco.stream import buffer
from loguru import logger

from historian.core.config import HistorianConfig
from historian.core.events import UserRef
from historian.core.listener import EventListener


def user_from_source(source: Optional[str]) -> UserRef:
    """Build a UserRef from a ``nick!user@host`` prefix; missing parts stay empty."""
    if not source:
        return UserRef()
    mask = irc.client.NickMask(source)
    if not mask.userhost:
        # Server names carry no user or host part.
        return UserRef(nick=mask.nick)
    return UserRef(login=mask.user or "", hostmask=mask.host or "", nick=mask.nick or "")


def _first_argument(event: irc.client.Event) -> str:
    return event.arguments[0] if event.arguments else ""


def _connect_factory(config: HistorianConfig) -> irc.connection.Factory:
    if not config.tls:
        return irc.connection.Factory()
    context = ssl.create_default_context()
    if not config.tls_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    wrapper = functools.partial(context.wrap_socket, server_hostname=config.server_address)
    return irc.connection.Factory(wrapper=wrapper)


class HistorianBot(irc.bot.SingleServerIRCBot):
    """Single-channel bot that reports everything it sees to ``listener``."""

    def __init__(
        self,
        config: HistorianConfig,
        listener: EventListener,
        version: str,
        connect_factory: Optional[irc.connection.Factory] = None,
    ):
        server = irc.bot.ServerSpec(config.server_address, config.server_port)
        super().__init__(
            [server],
            config.user,
            config.user,
            connect_factory=connect_factory or _connect_factory(config),
        )
        self._attempt_failed = False
        self.connection.buffer_class = buffer.LenientDecodingLineBuffer
        self.channel_name = config.channel
        self.listener = listener
        self.version = version

    def get_version(self) -> str:
        return self.version

    def connect(self, server, port, nickname, *args, **kwargs):
        self._attempt_failed = False
        try:
            super().connect(server, port, nickname, *args, **kwargs)
        except irc.client.ServerConnectionError as e:
            self._attempt_failed = True
            cause = e.__cause__ or e.__context__ or e
            self.listener.on_connect_failed({f"{server}:{port}": cause})
            raise

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def on_welcome(self, connection, event):
        self.listener.on_connect()
        logger.info(f"Joining {self.channel_name}")
        connection.join(self.channel_name)

    def on_disconnect(self, connection, event):
        if self._attempt_failed:
            # The library follows a failed attempt with a disconnect event;
            # connect() has already reported it and there was no session.
            return
        message = _first_argument(event)
        self.listener.on_disconnect(ConnectionError(message) if message else None)

    # ------------------------------------------------------------------
    # Channel traffic
    # ------------------------------------------------------------------

    def on_pubmsg(self, connection, event):
        self.listener.on_message(user_from_source(event.source), _first_argument(event))

    def on_privmsg(self, connection, event):
        self.listener.on_private_message(
            user_from_source(event.source), _first_argument(event)
        )

    def on_action(self, connection, event):
        self.listener.on_action(user_from_source(event.source), _first_argument(event))

    def on_pubnotice(self, connection, event):
        self.listener.on_notice(user_from_source(event.source), _first_argument(event))

    on_privnotice = on_pubnotice

    def on_topic(self, connection, event):
        self.listener.on_topic(user_from_source(event.source), _first_argument(event))

    def on_join(self, connection, event):
        self.listener.on_join(user_from_source(event.source), event.target)

    def on_part(self, connection, event):
        self.listener.on_part(user_from_source(event.source), _first_argument(event))
