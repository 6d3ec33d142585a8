class ChatClientError(Exception):
    """Base error of the chat client"""


class NodeStartError(ChatClientError):
    """The external node could not be started"""


class _ReasonError(ChatClientError):

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NodeConnectionError(_ReasonError):
    """Dialing a peer failed"""


class SendError(_ReasonError):
    """Publishing a message failed"""


class UnknownPeerError(ChatClientError):

    def __init__(self, peer_id: str):
        super().__init__(f"Unknown peer: {peer_id}")
        self.peer_id = peer_id


class NoAddressError(ChatClientError):
    """The node reported no listening address"""
