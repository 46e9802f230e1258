"""
Output DTOs for user API endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel


class CheckUserResponseDto(BaseModel):
    isRegistered: bool
    address: str


class RegisterResponseDto(BaseModel):
    address: str


class LeaderboardEntryDto(BaseModel):
    trimmed_address: str
    app_count: int
    is_user: bool = False
    win_1_amount: Optional[str] = None


class UserRecordDto(LeaderboardEntryDto):
    rank: int


class UsersWithAppCountsResponseDto(BaseModel):
    users: List[LeaderboardEntryDto]
    user_record: Optional[UserRecordDto] = None


class WinnerDto(BaseModel):
    address: str
    app_count: int
    win_1_amount: str


class WinnersResponseDto(BaseModel):
    winners: List[WinnerDto]
