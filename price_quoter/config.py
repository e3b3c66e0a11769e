"""
Configuration module for the Price Quoter
Loads environment variables (and an optional .env file) and validates configuration
"""
import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Project root directory (parent of price_quoter/)
PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file (if exists - local dev only)
env_file = PROJECT_ROOT / '.env'
if env_file.exists():
    load_dotenv(env_file)


# ═══════════════════════════════════════════════════════════════════
# WRITABLE PATHS
# ═══════════════════════════════════════════════════════════════════

def get_writable_path(folder_name: str) -> str:
    """Get a writable path, falling back to the temp directory when read-only"""
    env_path = os.getenv(folder_name.upper() + '_FOLDER')
    if env_path:
        if os.path.isabs(env_path):
            path = Path(env_path)
        else:
            path = PROJECT_ROOT / env_path
    else:
        path = PROJECT_ROOT / folder_name

    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except (PermissionError, OSError):
            path = Path(tempfile.gettempdir()) / 'price_quoter' / folder_name
            path.mkdir(parents=True, exist_ok=True)

    return str(path)


# ═══════════════════════════════════════════════════════════════════
# CONFIGURATION VALUES
# ═══════════════════════════════════════════════════════════════════

# Google Gemini Configuration
GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')
# Web-search grounding supplies the reference sources shown with each result
ENABLE_SEARCH_GROUNDING = os.getenv('ENABLE_SEARCH_GROUNDING', 'true').lower() == 'true'

# Session defaults
DEFAULT_REGION = os.getenv('DEFAULT_REGION', 'Sinaloa')

# Quotation header / footer
ORGANIZATION_NAME = os.getenv('ORGANIZATION_NAME', 'ALMACÉN DEL PACÍFICO')
ORGANIZATION_SUBTITLE = os.getenv('ORGANIZATION_SUBTITLE', 'Tecuala, Nayarit')
ORGANIZATION_ADDRESS = os.getenv('ORGANIZATION_ADDRESS', 'Carr. a El Filo 480-Sur, Salida, México')
REPORT_DISCLAIMER = os.getenv(
    'REPORT_DISCLAIMER',
    'NOTA IMPORTANTE: Información tomada directamente de enlaces a servidores de BEES '
    'para referencia interna. Se consideran promociones vigentes de agencia, mayoreo y '
    'modeloramas. Este documento es de carácter informativo.'
)

# Output folders
EXPORT_FOLDER = get_writable_path('exports')
LOG_FOLDER = get_writable_path('logs')

# Monitoring Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE_MAX_MB = int(os.getenv('LOG_FILE_MAX_MB', '10'))
LOG_FILE_BACKUP_COUNT = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))


def validate_config():
    """Validate that all required configuration is present"""
    errors = []

    if not GOOGLE_API_KEY:
        errors.append("GOOGLE_API_KEY is not set")

    # Imported here to keep config free of package imports at load time
    from price_quoter.models import Region
    try:
        Region.from_label(DEFAULT_REGION)
    except ValueError as e:
        errors.append(f"DEFAULT_REGION is invalid: {e}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(errors))

    return True


if __name__ == "__main__":
    try:
        validate_config()
        print("[OK] Configuration validated successfully")
    except ValueError as e:
        print(f"[FAIL] Configuration validation failed:\n{e}")
