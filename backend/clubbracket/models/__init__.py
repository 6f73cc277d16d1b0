from clubbracket.models.bracket_slot import (
    BracketSlot,
    BracketSourceType,
    GroupRankSource,
    MatchWinnerSource,
    SeedSource,
    SlotSource,
)
from clubbracket.models.draw import DrawGroupAssignment, DrawPairing, DrawSession, DrawStatus, DrawType
from clubbracket.models.group import GroupMember, GroupStanding, TournamentGroup
from clubbracket.models.match import Match, MatchSide, MatchSideMember, MatchStatus, SideLabel
from clubbracket.models.participant import TournamentParticipant, TournamentParticipantMember
from clubbracket.models.stage import Stage, StageType
from clubbracket.models.tournament import MatchFormat, Tournament
from clubbracket.models.user import User

__all__ = [
    "Tournament",
    "MatchFormat",
    "User",
    "Stage",
    "StageType",
    "TournamentParticipant",
    "TournamentParticipantMember",
    "TournamentGroup",
    "GroupMember",
    "GroupStanding",
    "Match",
    "MatchSide",
    "MatchSideMember",
    "MatchStatus",
    "SideLabel",
    "BracketSlot",
    "BracketSourceType",
    "SlotSource",
    "SeedSource",
    "GroupRankSource",
    "MatchWinnerSource",
    "DrawSession",
    "DrawType",
    "DrawStatus",
    "DrawPairing",
    "DrawGroupAssignment",
]
