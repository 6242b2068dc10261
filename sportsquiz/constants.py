STATUS_WAITING = "waiting"
STATUS_PLAYING = "playing"
STATUS_FINISHED = "finished"

# Allowed forward moves of Room.status; nothing ever moves back.
STATUS_TRANSITIONS: dict[str, set[str]] = {
    STATUS_WAITING: {STATUS_PLAYING},
    STATUS_PLAYING: {STATUS_FINISHED},
    STATUS_FINISHED: set(),
}

# Outbound message types
MSG_ROOMS_LIST = "rooms_list"
MSG_ROOM_JOINED = "room_joined"
MSG_ROOM_UPDATED = "room_updated"
MSG_GAME_STARTED = "game_started"
MSG_QUESTION = "question"
MSG_ROUND_RESULTS = "round_results"
MSG_GAME_FINISHED = "game_finished"
MSG_ERROR = "error"

__all__ = [
    "STATUS_WAITING",
    "STATUS_PLAYING",
    "STATUS_FINISHED",
    "STATUS_TRANSITIONS",
    "MSG_ROOMS_LIST",
    "MSG_ROOM_JOINED",
    "MSG_ROOM_UPDATED",
    "MSG_GAME_STARTED",
    "MSG_QUESTION",
    "MSG_ROUND_RESULTS",
    "MSG_GAME_FINISHED",
    "MSG_ERROR",
]
