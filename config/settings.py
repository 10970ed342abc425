"""Application settings read from the environment"""
import os
import secrets
from dotenv import load_dotenv

load_dotenv()

# Table the form inserts into
WAITLIST_TABLE = os.environ.get('WAITLIST_TABLE', 'waitlist')

# Seconds the success state stays on screen before the form clears
RESET_DELAY_SECONDS = 3

# Signs the session cookie that ties a browser to its form; a random key
# means sessions do not survive a restart
SECRET_KEY = os.environ.get('FLASK_SECRET_KEY') or secrets.token_hex(32)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:5000').split(',')
    if origin.strip()
]

PORT = int(os.environ.get('PORT', 5000))
DEBUG = os.environ.get('FLASK_ENV') == 'development'
