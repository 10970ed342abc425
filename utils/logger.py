"""Process-wide logging for the waitlist service; visitor emails are masked"""
import logging
import os
import sys

# LOG_LEVEL=DEBUG also shows rejected edits, ignored submits and form resets
log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger('waitlist')

def mask_email(email: str) -> str:
    """Keep the first character of the local part: ada@example.com -> a***@example.com"""
    if not email or '@' not in email:
        return '<invalid>'
    local, _, domain = email.partition('@')
    return f"{local[:1]}***@{domain}"

def log_error(message: str, error: Exception = None, traceback_str: str = None):
    """Failed inserts and route crashes; attaches the exception or a formatted traceback"""
    if error:
        logger.error(f"{message}: {str(error)}", exc_info=error)
    elif traceback_str:
        logger.error(f"{message}\n{traceback_str}")
    else:
        logger.error(message)

def log_warning(message: str):
    """Inserts the store rejected with a structured error"""
    logger.warning(message)

def log_info(message: str):
    logger.info(message)

def log_debug(message: str):
    logger.debug(message)
