# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── punto_venta/     <- Paquete Python
#       ├── main.py      <- create_app()
#       ├── services/
#       └── repositories/
#
# La configuración se lee del entorno (.env): POS_DATABASE_URL,
# POS_SECRET_KEY, POS_PRODUCTION_MODE...
# ==============================================================================

from punto_venta.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
