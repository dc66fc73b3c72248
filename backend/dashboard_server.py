import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# 添加当前目录到Python路径
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# 加载 .env 文件 (强制覆盖已存在的环境变量)
env_file = Path(__file__).parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)

from app.main import app  # noqa: E402


if __name__ == "__main__":
    uvicorn.run("dashboard_server:app", host="0.0.0.0", port=8000, reload=True, timeout_keep_alive=120)
