from .client import Client, ClientHistory
from .payment import Payment
from .user import User
