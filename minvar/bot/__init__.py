from .messages import format_error, format_result, parse_request
from .telegram import TelegramBot
