from campusnet.models.user import User
from campusnet.models.follow import Follow
from campusnet.models.post import Post, PostStatus
from campusnet.models.comment import Comment, CommentStatus
from campusnet.models.question import Question, QuestionStatus
from campusnet.models.answer import Answer
from campusnet.models.shared_file import SharedFile, FileCategory
from campusnet.models.reaction import Reaction, ReactionKind, SubjectType, KindSet
from campusnet.models.notification import Notification
