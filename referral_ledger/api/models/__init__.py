from .base import Base
from .agent import Agent
from .order import Order, OrderStatus
from .commission import Commission, CommissionStatus
from .payout import Payout, PayoutCommission, PayoutStatus
from .setting import Setting, COMMISSION_RATE_KEY
from .referral import ReferralVisit
