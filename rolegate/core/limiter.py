from slowapi import Limiter

from rolegate.features.memberships.dependencies import get_user_id_header


limiter = Limiter(key_func=get_user_id_header)
