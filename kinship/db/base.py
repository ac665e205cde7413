# Import all models here so Alembic and create_all can see them
from kinship.db.session import Base

from kinship.modules.user_management.models.user import User
from kinship.modules.friendships.models.friendship import Friendship
from kinship.modules.groups.models.group import Group, GroupMembership
from kinship.modules.posts.models.post import Post
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.personal_posts.models.personal_post import PersonalPost
from kinship.modules.events.models.event import Event, EventAttendance
from kinship.modules.messages.models.message import Conversation, Message
