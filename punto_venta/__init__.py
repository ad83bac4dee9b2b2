# ==============================================================================
# PUNTO DE VENTA
# ==============================================================================
# Catálogo de productos, carrito con IVA y cobro, inventario con historial,
# clientes, configuración del negocio y registro de auditoría.
#
# Uso:
#     from punto_venta.main import create_app
#     app = create_app()
# ==============================================================================

__version__ = "1.0.0"
