"""
Database schema definitions.
Table creation, indexes, triggers, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'notifications',
        'audit_log',
        'reviews',
        'extra_items',
        'cancellation_requests',
        'modification_requests',
        'reservation_status_history',
        'reservations',
        'guests',
        'cabana_price_ranges',
        'cabana_prices',
        'cabanas',
        'cabana_classes',
        'concept_prices',
        'concept_products',
        'concepts',
        'products',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            full_name TEXT,
            role TEXT NOT NULL CHECK(role IN ('requester', 'approver', 'fulfillment', 'system_admin')),
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 2. Catalog: products and concepts
    db.execute('''
        CREATE TABLE products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            purchase_price REAL DEFAULT 0,
            sale_price REAL NOT NULL DEFAULT 0 CHECK(sale_price >= 0),
            is_active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE concepts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE concept_products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            concept_id INTEGER NOT NULL REFERENCES concepts(id) ON DELETE CASCADE,
            product_id INTEGER NOT NULL REFERENCES products(id),
            quantity INTEGER NOT NULL DEFAULT 1 CHECK(quantity > 0),
            UNIQUE(concept_id, product_id)
        )
    ''')

    db.execute('''
        CREATE TABLE concept_prices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            concept_id INTEGER NOT NULL REFERENCES concepts(id) ON DELETE CASCADE,
            product_id INTEGER NOT NULL REFERENCES products(id),
            price REAL NOT NULL CHECK(price >= 0),
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(concept_id, product_id)
        )
    ''')

    # 3. Cabanas (resource store)
    db.execute('''
        CREATE TABLE cabana_classes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT
        )
    ''')

    db.execute('''
        CREATE TABLE cabanas (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            class_id INTEGER REFERENCES cabana_classes(id),
            concept_id INTEGER REFERENCES concepts(id),
            status TEXT NOT NULL DEFAULT 'AVAILABLE'
                CHECK(status IN ('AVAILABLE', 'RESERVED', 'CLOSED')),
            is_open_for_reservation INTEGER DEFAULT 1,
            coord_x REAL DEFAULT 0,
            coord_y REAL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 4. Cabana pricing tiers
    db.execute('''
        CREATE TABLE cabana_prices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            cabana_id INTEGER NOT NULL REFERENCES cabanas(id) ON DELETE CASCADE,
            date TEXT NOT NULL,
            daily_price REAL NOT NULL CHECK(daily_price >= 0),
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(cabana_id, date)
        )
    ''')

    db.execute('''
        CREATE TABLE cabana_price_ranges (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            cabana_id INTEGER NOT NULL REFERENCES cabanas(id) ON DELETE CASCADE,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            daily_price REAL NOT NULL CHECK(daily_price >= 0),
            label TEXT,
            priority INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK(end_date > start_date)
        )
    ''')

    # 5. Guests
    db.execute('''
        CREATE TABLE guests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            phone TEXT,
            email TEXT,
            total_visits INTEGER DEFAULT 0,
            last_visit_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 6. Reservations
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            cabana_id INTEGER NOT NULL REFERENCES cabanas(id),
            user_id INTEGER NOT NULL REFERENCES users(id),
            guest_id INTEGER REFERENCES guests(id),
            guest_name TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK(status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED',
                                 'CHECKED_IN', 'CHECKED_OUT',
                                 'MODIFICATION_PENDING', 'EXTRA_PENDING')),
            total_price REAL,
            rejection_reason TEXT,
            check_in_at TIMESTAMP,
            checked_in_by INTEGER REFERENCES users(id),
            check_out_at TIMESTAMP,
            checked_out_by INTEGER REFERENCES users(id),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK(end_date > start_date)
        )
    ''')

    db.execute('''
        CREATE TABLE reservation_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            from_status TEXT,
            to_status TEXT NOT NULL,
            changed_by INTEGER REFERENCES users(id),
            reason TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 7. Sub-request ledger
    db.execute('''
        CREATE TABLE modification_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            requested_by INTEGER NOT NULL REFERENCES users(id),
            new_cabana_id INTEGER REFERENCES cabanas(id),
            new_start_date TEXT,
            new_end_date TEXT,
            new_guest_name TEXT,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK(status IN ('PENDING', 'APPROVED', 'REJECTED')),
            rejection_reason TEXT,
            resolved_by INTEGER REFERENCES users(id),
            resolved_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE cancellation_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            requested_by INTEGER NOT NULL REFERENCES users(id),
            reason TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK(status IN ('PENDING', 'APPROVED', 'REJECTED')),
            rejection_reason TEXT,
            resolved_by INTEGER REFERENCES users(id),
            resolved_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 8. Extras and reviews
    db.execute('''
        CREATE TABLE extra_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            product_id INTEGER NOT NULL REFERENCES products(id),
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            unit_price REAL NOT NULL CHECK(unit_price >= 0),
            added_by INTEGER REFERENCES users(id),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE reviews (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER UNIQUE NOT NULL REFERENCES reservations(id),
            user_id INTEGER NOT NULL REFERENCES users(id),
            rating INTEGER NOT NULL CHECK(rating BETWEEN 1 AND 5),
            comment TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 9. Side-effect sinks
    db.execute('''
        CREATE TABLE notifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id),
            type TEXT NOT NULL,
            title TEXT NOT NULL,
            message TEXT,
            metadata TEXT,
            is_read INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER REFERENCES users(id),
            action TEXT NOT NULL,
            entity_type TEXT NOT NULL,
            entity_id INTEGER,
            changes TEXT,
            ip_address TEXT,
            user_agent TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create indexes for performance optimization."""
    db.execute('CREATE INDEX idx_reservations_cabana_dates ON reservations(cabana_id, start_date, end_date)')
    db.execute('CREATE INDEX idx_reservations_status ON reservations(status)')
    db.execute('CREATE INDEX idx_reservations_user ON reservations(user_id)')
    db.execute('CREATE INDEX idx_status_history_reservation ON reservation_status_history(reservation_id)')
    db.execute('CREATE INDEX idx_modification_requests_reservation ON modification_requests(reservation_id)')
    db.execute('CREATE INDEX idx_cancellation_requests_reservation ON cancellation_requests(reservation_id)')
    db.execute('CREATE INDEX idx_extra_items_reservation ON extra_items(reservation_id)')
    db.execute('CREATE INDEX idx_cabana_price_ranges_cabana ON cabana_price_ranges(cabana_id, start_date, end_date)')
    db.execute('CREATE INDEX idx_notifications_user ON notifications(user_id, is_read)')
    db.execute('CREATE INDEX idx_audit_log_entity ON audit_log(entity_type, entity_id)')


def create_triggers(db):
    """Create triggers that keep history and resolved requests immutable."""
    db.execute('''
        CREATE TRIGGER trg_status_history_no_update
        BEFORE UPDATE ON reservation_status_history
        BEGIN
            SELECT RAISE(ABORT, 'reservation_status_history is append-only');
        END
    ''')

    db.execute('''
        CREATE TRIGGER trg_status_history_no_delete
        BEFORE DELETE ON reservation_status_history
        BEGIN
            SELECT RAISE(ABORT, 'reservation_status_history is append-only');
        END
    ''')

    for table in ('modification_requests', 'cancellation_requests'):
        db.execute(f'''
            CREATE TRIGGER trg_{table}_resolved_immutable
            BEFORE UPDATE ON {table}
            WHEN OLD.status != 'PENDING'
            BEGIN
                SELECT RAISE(ABORT, '{table}: resolved requests are immutable');
            END
        ''')
