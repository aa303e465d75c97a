import logging
import uvicorn
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime

from eventhorizon.api.http import create_app
from eventhorizon.config import AppConfig

config = AppConfig.load_from_env()

# Criar diretório de logs se não existir
log_dir = "logs"
os.makedirs(log_dir, exist_ok=True)

# Configuração central de logging
log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
date_format = "%Y-%m-%d %H:%M:%S"

root_logger = logging.getLogger()
root_logger.setLevel(config.log_level)

# Handler para console (mantém saída no terminal)
console_handler = logging.StreamHandler()
console_handler.setLevel(config.log_level)
console_handler.setFormatter(logging.Formatter(log_format, date_format))

# Handler para arquivo com rotação (máximo 10MB por arquivo, mantém 5 backups)
log_file = os.path.join(log_dir, "app.log")
file_handler = RotatingFileHandler(
    log_file,
    maxBytes=10 * 1024 * 1024,  # 10MB
    backupCount=5,
    encoding='utf-8'
)
file_handler.setLevel(config.log_level)
file_handler.setFormatter(logging.Formatter(log_format, date_format))

root_logger.addHandler(console_handler)
root_logger.addHandler(file_handler)

logging.info(f"Logging configurado. Arquivo de log: {log_file}")
logging.info(f"Aplicação iniciada em {datetime.now().strftime(date_format)}")

app = create_app(config)

if __name__ == "__main__":
    # uvicorn trata SIGINT/SIGTERM: o lifespan fecha o pool antes de sair com código 0
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
