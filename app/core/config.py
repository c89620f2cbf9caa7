import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./interviewace.db")

# ✅ Security (tokens are issued by Supabase Auth, we only verify them)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")  # no default; every token is rejected until set
ALGORITHM = os.getenv("ALGORITHM", "HS256")
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

# ✅ Frontend
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")  # empty disables the file log

# ✅ Session storage
LOCAL_SESSION_STORE_PATH = os.getenv("LOCAL_SESSION_STORE_PATH", "data/interview_sessions.json")

# ✅ Analytics / plans
DEFAULT_TIME_RANGE = os.getenv("DEFAULT_TIME_RANGE", "30d")
FREE_MONTHLY_QUESTION_LIMIT = int(os.getenv("FREE_MONTHLY_QUESTION_LIMIT", "5"))
