"""
Modules package initialization.
This package contains all the functional modules of the application.
"""

from kinship.modules import auth
from kinship.modules import user_management
from kinship.modules import friendships
from kinship.modules import groups
from kinship.modules import posts
from kinship.modules import personal_posts
from kinship.modules import events
from kinship.modules import feed
from kinship.modules import messages
from kinship.modules import counters
