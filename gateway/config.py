# gateway.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service de paiement.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, PayFast, Stripe), CORS/hosts
- Les objets métier (codec, builder, reconciler) ne lisent jamais ces constantes
  directement: ils reçoivent leurs valeurs à la construction (voir gateway.dependencies)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

SERVICE_NAME = "PayFast Webhook Handler"

# Supabase: URL et clé service-role (le webhook n'a pas de session utilisateur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")
# Borne haute (secondes) de chaque appel PostgREST
SUPABASE_TIMEOUT_SECONDS = float(_clean_env(os.getenv("SUPABASE_TIMEOUT_SECONDS")) or 10)

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# PayFast: identité marchand (non secrète) et passphrase (secrète, jamais loggée)
PAYFAST_MERCHANT_ID = _clean_env(os.getenv("PAYFAST_MERCHANT_ID") or "10000100")
PAYFAST_MERCHANT_KEY = _clean_env(os.getenv("PAYFAST_MERCHANT_KEY") or "46f0cd694581a")
PAYFAST_PASSPHRASE = _clean_env(os.getenv("PAYFAST_PASSPHRASE") or "")
PAYFAST_SANDBOX = _flag("PAYFAST_SANDBOX", "true")
PAYFAST_CURRENCY = _clean_env(os.getenv("PAYFAST_CURRENCY") or "ZAR")

# Encodage de l'espace dans la chaîne signée: "percent" (%20) ou "plus" (+).
# Le signataire (endpoint signature) et la vérification ITN sont réglables séparément:
# à confirmer contre le comportement réel du processeur.
PAYFAST_SIGNING_SPACE_ENCODING = _clean_env(os.getenv("PAYFAST_SIGNING_SPACE_ENCODING") or "percent").lower()
PAYFAST_ITN_SPACE_ENCODING = _clean_env(os.getenv("PAYFAST_ITN_SPACE_ENCODING") or "plus").lower()

# API REST PayFast (abonnements)
PAYFAST_API_BASE = _clean_env(os.getenv("PAYFAST_API_BASE") or "https://api.payfast.co.za").rstrip("/")
PAYFAST_API_VERSION = _clean_env(os.getenv("PAYFAST_API_VERSION") or "v1")
PAYFAST_API_TIMEOUT_SECONDS = float(_clean_env(os.getenv("PAYFAST_API_TIMEOUT_SECONDS")) or 10)

# Redirections navigateur / application mobile
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:3002").rstrip("/")
WEB_APP_URL = _clean_env(os.getenv("WEB_APP_URL") or "http://localhost:5173").rstrip("/")
MOBILE_APP_SCHEME = _clean_env(os.getenv("MOBILE_APP_SCHEME") or "farmersbracket")

# Stripe (rail carte secondaire)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# CORS / hôtes
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "*").split(",") if h.strip()]
COOKIE_SECURE = _flag("COOKIE_SECURE")
