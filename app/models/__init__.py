# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from .user import User
from .mentor import Mentor
from .goal import Goal
from .checkin import Checkin
from .mentor_response import MentorResponse
from .video_generation import VideoGeneration
from .custom_avatar import CustomAvatar
from .proactive_message import ProactiveMessage
from .revoked_token import RevokedToken
