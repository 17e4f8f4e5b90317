from .player import UNSET, PlayerRecord, PlayerUpdate, dump_old_names, parse_old_names

__all__ = ["UNSET", "PlayerRecord", "PlayerUpdate", "dump_old_names", "parse_old_names"]
