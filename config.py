import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 시험 서비스(원격 API) 설정
EXAM_API_BASE_URL = os.getenv("EXAM_API_BASE_URL", "https://demo.zakerai.org/api")
EXAM_API_TOKEN = os.getenv("EXAM_API_TOKEN") or None
EXAM_API_TIMEOUT = float(os.getenv("EXAM_API_TIMEOUT", "30"))

# 진행 상황 저장소 설정
PROGRESS_BACKEND = os.getenv("PROGRESS_BACKEND", "file")   # file | memory
PROGRESS_DIR = os.getenv("PROGRESS_DIR", os.path.join(BASE_DIR, "progress"))

# 타이머 설정
TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))
DANGER_THRESHOLD_SECONDS = 180   # 마지막 3분은 경고 표시

# 세션 설정
SESSION_TTL = int(os.getenv("SESSION_TTL", "14400"))              # 4시간
SESSION_CLEANUP_INTERVAL = int(os.getenv("SESSION_CLEANUP_INTERVAL", "300"))
