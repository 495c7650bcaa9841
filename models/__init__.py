from .session import Session
from .invitation import Invitation, InvitationCreate, InvitationCreated, InvitationAcceptance, InvitationStatus
from .connection import Connection, ConnectionCreate, ConnectionStatus
from .affirmation import Affirmation, AffirmationCreate, AffirmationStatus, AffirmationTheme, AFFIRMATION_THEMES
from .person import Person, PersonCreate, PersonUpdate, PersonWithConnection
from .profile import UserProfile, UserProfileUpdate
from .event import Event
