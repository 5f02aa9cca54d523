"""Solana socket client module."""

from solana_socket.client.correlator import SubscriptionCorrelator
from solana_socket.client.dispatcher import EventDispatcher, SocketEventsConsumer, SocketEventsHandler
from solana_socket.client.settings import SocketSettings
from solana_socket.client.socket import SolanaSocket
from solana_socket.client.transports import Transport

__all__ = [
    "EventDispatcher",
    "SocketEventsConsumer",
    "SocketEventsHandler",
    "SocketSettings",
    "SolanaSocket",
    "SubscriptionCorrelator",
    "Transport",
]
