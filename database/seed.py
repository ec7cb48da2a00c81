"""
Database seed data.
Initial data population for fresh database installations.
"""


def seed_database(db):
    """Insert initial seed data."""

    # 1. Create Users (one per role; casino2 is a second requester)
    users_data = [
        ('admin', 'admin@cabanaclub.local', 'Administrador', 'system_admin'),
        ('recepcion', 'recepcion@cabanaclub.local', 'Recepción', 'approver'),
        ('casino1', 'casino1@cabanaclub.local', 'Casino Uno', 'requester'),
        ('casino2', 'casino2@cabanaclub.local', 'Casino Dos', 'requester'),
        ('fnb', 'fnb@cabanaclub.local', 'Alimentos y Bebidas', 'fulfillment'),
    ]

    for username, email, full_name, role in users_data:
        db.execute('''
            INSERT INTO users (username, email, full_name, role, active)
            VALUES (?, ?, ?, ?, 1)
        ''', (username, email, full_name, role))

    # 2. Create Products
    products_data = [
        ('Agua mineral', 10.0, 50.0, 1),
        ('Tabla de frutas', 90.0, 300.0, 1),
        ('Champán', 900.0, 2500.0, 1),
        ('Cóctel de temporada', 40.0, 180.0, 0),
    ]

    for name, purchase_price, sale_price, is_active in products_data:
        db.execute('''
            INSERT INTO products (name, purchase_price, sale_price, is_active)
            VALUES (?, ?, ?, ?)
        ''', (name, purchase_price, sale_price, is_active))

    # 3. Create Concepts (packages) and their contents
    db.execute('''
        INSERT INTO concepts (name, description)
        VALUES ('Paquete Oro', 'Agua y fruta incluidas durante la estancia')
    ''')
    concept_id = db.execute("SELECT id FROM concepts WHERE name = 'Paquete Oro'").fetchone()[0]

    for product_name, quantity in [('Agua mineral', 4), ('Tabla de frutas', 1)]:
        product_id = db.execute('SELECT id FROM products WHERE name = ?', (product_name,)).fetchone()[0]
        db.execute('''
            INSERT INTO concept_products (concept_id, product_id, quantity)
            VALUES (?, ?, ?)
        ''', (concept_id, product_id, quantity))

    # 4. Create Cabana Classes
    for name, description in [('Estándar', 'Cabana junto a la piscina'),
                              ('VIP', 'Cabana privada con servicio dedicado')]:
        db.execute('INSERT INTO cabana_classes (name, description) VALUES (?, ?)',
                   (name, description))

    standard_id = db.execute("SELECT id FROM cabana_classes WHERE name = 'Estándar'").fetchone()[0]
    vip_id = db.execute("SELECT id FROM cabana_classes WHERE name = 'VIP'").fetchone()[0]

    # 5. Create Cabanas
    cabanas_data = [
        ('Cabana 1', standard_id, concept_id, 10, 10),
        ('Cabana 2', standard_id, None, 60, 10),
        ('Cabana 3', standard_id, None, 110, 10),
        ('Cabana VIP', vip_id, concept_id, 60, 80),
    ]

    for name, class_id, cabana_concept_id, coord_x, coord_y in cabanas_data:
        db.execute('''
            INSERT INTO cabanas (name, class_id, concept_id, status, is_open_for_reservation, coord_x, coord_y)
            VALUES (?, ?, ?, 'AVAILABLE', 1, ?, ?)
        ''', (name, class_id, cabana_concept_id, coord_x, coord_y))
