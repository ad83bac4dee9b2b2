from decimal import Decimal

from punto_venta.models.entities import ActionType
from punto_venta.services import CatalogService


def test_parse_reports_line_numbers():
    text = (
        "name,category,price,stock,sku\n"
        ",Bebidas,1.00,5,\n"
        "Café,Bebidas,3.50,20,CAF-001\n"
    )
    parsed = CatalogService.parse_csv(text)
    assert parsed['errors'] == ['Línea 2: falta nombre o SKU']
    assert len(parsed['products']) == 1
    assert parsed['products'][0]['price'] == Decimal('3.50')


def test_parse_blank_lines_do_not_count():
    text = (
        "nombre,sku,precio\n"
        "\n"
        "Pan,PAN-001,0.50\n"
        "\n"
        "Solo dos,columnas\n"
    )
    parsed = CatalogService.parse_csv(text)
    assert parsed['errors'] == ['Línea 3: número incorrecto de columnas']
    assert parsed['products'][0]['name'] == 'Pan'


def test_parse_spanish_headers_and_defaults():
    text = "Nombre,SKU,Categoría,Precio,Stock,Descripción\nDona,PAN-002,,abc,xyz,Glaseada\n"
    product = CatalogService.parse_csv(text)['products'][0]
    assert product['category'] == 'Sin categoría'
    assert product['price'] == Decimal('0.00')
    assert product['stock'] == 0
    assert product['description'] == 'Glaseada'


def test_parse_clamps_negative_values():
    text = "name,sku,price,stock\nAgua,AGU-001,-2,-5\n"
    product = CatalogService.parse_csv(text)['products'][0]
    assert product['price'] == Decimal('0.00')
    assert product['stock'] == 0


def test_parse_out_of_range_numbers_become_zero():
    text = (
        "name,sku,price,stock\n"
        "Caja,CAJ-001,1e30,99999999999999999999\n"
        "Bolsa,BOL-001,10000000000,1e30\n"
    )
    parsed = CatalogService.parse_csv(text)
    assert parsed['errors'] == []
    assert [p['price'] for p in parsed['products']] == [Decimal('0.00'), Decimal('0.00')]
    assert [p['stock'] for p in parsed['products']] == [0, 0]


def test_parse_missing_columns():
    parsed = CatalogService.parse_csv("category,price\nBebidas,1\n")
    assert parsed['products'] == []
    assert parsed['errors'] == ['Faltan columnas requeridas: name, sku']


def test_parse_needs_data_row():
    parsed = CatalogService.parse_csv("name,sku\n\n")
    assert parsed['products'] == []
    assert len(parsed['errors']) == 1


def test_import_inserts_valid_rows(container, actor):
    text = (
        "name,category,price,stock,sku\n"
        "Café,Bebidas,3.50,20,CAF-001\n"
        "Té,Bebidas,2.00,15,TE-001\n"
        ",Bebidas,1.00,5,\n"
    )
    r = container.catalog_service.import_csv(text, actor)
    assert r['ok'], r
    assert r['importados'] == 2
    assert r['errores'] == ['Línea 4: falta nombre o SKU']
    assert len(container.catalog_service.list_products()) == 2

    # Un único registro de auditoría para toda la importación
    logs = container.audit_repo.list_by_action(ActionType.PRODUCTO_CREADO.value)
    assert len(logs) == 1
    assert logs[0]['new_values']['count'] == 2


def test_import_without_valid_rows(container, actor):
    r = container.catalog_service.import_csv("name,sku\n,\n", actor)
    assert r['ok'] is False
    assert r['error'] == 'Línea 2: falta nombre o SKU'
    assert container.catalog_service.list_products() == []


def test_import_with_oversized_numbers_keeps_other_rows(container, actor):
    text = (
        "name,sku,price\n"
        "X,X-1,1e30\n"
        "Pan,PAN-001,0.50\n"
    )
    r = container.catalog_service.import_csv(text, actor)
    assert r['ok'], r
    assert r['importados'] == 2
    prices = {p['sku']: p['price'] for p in container.catalog_service.list_products()}
    assert prices == {'X-1': Decimal('0.00'), 'PAN-001': Decimal('0.50')}
