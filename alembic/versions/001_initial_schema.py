"""001 – Initial schema: all tables, indexes, seed configuration.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute('CREATE EXTENSION IF NOT EXISTS "pg_trgm"')

    # ── 1. departments ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE departments (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL UNIQUE,
            description TEXT,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            username      VARCHAR(100) NOT NULL UNIQUE,
            password_hash VARCHAR(255) NOT NULL,
            role          VARCHAR(20)  NOT NULL DEFAULT 'employee'
                          CHECK (role IN ('admin', 'manager', 'employee')),
            is_active     BOOLEAN DEFAULT TRUE,
            full_name     VARCHAR(200) NOT NULL,
            employee_code VARCHAR(20)  NOT NULL UNIQUE,
            email         VARCHAR(255) NOT NULL UNIQUE,
            phone         VARCHAR(30),
            address       TEXT,
            job_title     VARCHAR(150),
            department_id UUID REFERENCES departments(id) ON DELETE SET NULL,
            base_salary   NUMERIC(12, 2) NOT NULL DEFAULT 0,
            start_date    DATE,
            last_login_at TIMESTAMPTZ,
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_users_department_id ON users(department_id)")
    op.execute("CREATE INDEX ix_users_role          ON users(role)")
    op.execute("CREATE INDEX idx_users_name_trgm    ON users USING gin (full_name gin_trgm_ops)")

    # ── 3. user_sessions ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE user_sessions (
            id         UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id    UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash VARCHAR(128) NOT NULL,
            ip_address INET,
            user_agent TEXT,
            expires_at TIMESTAMPTZ NOT NULL,
            is_revoked BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_user_sessions_user    ON user_sessions(user_id)")
    op.execute("CREATE INDEX idx_user_sessions_token   ON user_sessions(token_hash)")
    op.execute("CREATE INDEX idx_user_sessions_expires ON user_sessions(expires_at)")

    # ── 4. work_shifts ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE work_shifts (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name                 VARCHAR(100) NOT NULL UNIQUE,
            start_time           TIME NOT NULL,
            end_time             TIME NOT NULL,
            grace_period_minutes INTEGER DEFAULT 15,
            is_default           BOOLEAN DEFAULT FALSE,
            is_active            BOOLEAN DEFAULT TRUE,
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 4a. working_days ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE working_days (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            day         VARCHAR(10) NOT NULL UNIQUE,
            start_time  TIME,
            end_time    TIME,
            break_start TIME,
            break_end   TIME,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 5. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id                 UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            date                    DATE NOT NULL,
            check_in                TIMESTAMPTZ,
            check_out               TIMESTAMPTZ,
            working_minutes         INTEGER DEFAULT 0,
            status                  VARCHAR(20) NOT NULL DEFAULT 'present',
            is_late                 BOOLEAN DEFAULT FALSE,
            late_minutes            INTEGER DEFAULT 0,
            is_early_departure      BOOLEAN DEFAULT FALSE,
            early_departure_minutes INTEGER DEFAULT 0,
            overtime_minutes        INTEGER DEFAULT 0,
            notes                   TEXT,
            location                VARCHAR(255),
            ip_address              INET,
            is_manual_entry         BOOLEAN DEFAULT FALSE,
            approved_by             UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at             TIMESTAMPTZ,
            created_at              TIMESTAMPTZ DEFAULT NOW(),
            updated_at              TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_user_date UNIQUE (user_id, date)
        )
    """)
    op.execute("CREATE INDEX ix_attendance_records_date ON attendance_records(date)")

    # ── 6. attendance_corrections ─────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_corrections (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id             UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            attendance_id       UUID REFERENCES attendance_records(id) ON DELETE SET NULL,
            date                DATE NOT NULL,
            request_type        VARCHAR(30) NOT NULL,
            original_check_in   TIMESTAMPTZ,
            original_check_out  TIMESTAMPTZ,
            requested_check_in  TIMESTAMPTZ,
            requested_check_out TIMESTAMPTZ,
            reason              TEXT NOT NULL,
            status              VARCHAR(20) NOT NULL DEFAULT 'pending',
            reviewed_by         UUID REFERENCES users(id) ON DELETE SET NULL,
            reviewed_at         TIMESTAMPTZ,
            review_notes        TEXT,
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_corrections_user_status ON attendance_corrections(user_id, status)")

    # ── 7. attendance_summaries ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_summaries (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id                UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            month                  INTEGER NOT NULL,
            year                   INTEGER NOT NULL,
            total_working_days     INTEGER DEFAULT 0,
            present_days           INTEGER DEFAULT 0,
            absent_days            INTEGER DEFAULT 0,
            late_days              INTEGER DEFAULT 0,
            leave_days             INTEGER DEFAULT 0,
            total_working_minutes  INTEGER DEFAULT 0,
            total_late_minutes     INTEGER DEFAULT 0,
            total_overtime_minutes INTEGER DEFAULT 0,
            generated_at           TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_summary_period UNIQUE (user_id, month, year)
        )
    """)

    # ── 8. holidays ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE holidays (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            date         DATE NOT NULL,
            name         VARCHAR(200) NOT NULL,
            description  TEXT,
            is_recurring BOOLEAN DEFAULT FALSE,
            created_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_holidays_date ON holidays(date)")

    # ── 9. applications ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE applications (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id          UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            department_id    UUID REFERENCES departments(id) ON DELETE SET NULL,
            title            VARCHAR(255) NOT NULL,
            reason           TEXT NOT NULL,
            application_type VARCHAR(30) NOT NULL DEFAULT 'leave_request',
            priority         VARCHAR(20) NOT NULL DEFAULT 'medium',
            start_date       DATE NOT NULL,
            end_date         DATE NOT NULL,
            status           VARCHAR(20) NOT NULL DEFAULT 'pending',
            approved_by      UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at      TIMESTAMPTZ,
            rejected_by      UUID REFERENCES users(id) ON DELETE SET NULL,
            rejected_at      TIMESTAMPTZ,
            rejection_reason TEXT,
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            updated_at       TIMESTAMPTZ DEFAULT NOW(),
            CHECK (start_date < end_date)
        )
    """)
    op.execute("CREATE INDEX ix_applications_user_id ON applications(user_id)")
    op.execute("CREATE INDEX ix_applications_department_status ON applications(department_id, status)")

    # ── 10. expenses ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE expenses (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id          UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            department_id    UUID REFERENCES departments(id) ON DELETE SET NULL,
            item_name        VARCHAR(255) NOT NULL,
            amount           NUMERIC(12, 2) NOT NULL CHECK (amount > 0),
            date             DATE NOT NULL,
            reason           TEXT,
            status           VARCHAR(20) NOT NULL DEFAULT 'pending',
            approved_by      UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at      TIMESTAMPTZ,
            rejected_by      UUID REFERENCES users(id) ON DELETE SET NULL,
            rejected_at      TIMESTAMPTZ,
            rejection_reason TEXT,
            paid_by          UUID REFERENCES users(id) ON DELETE SET NULL,
            paid_at          TIMESTAMPTZ,
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            updated_at       TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_expenses_department_status ON expenses(department_id, status)")
    op.execute("CREATE INDEX ix_expenses_date ON expenses(date)")

    # ── 11. salary_components ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE salary_components (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name           VARCHAR(100) NOT NULL UNIQUE,
            component_type VARCHAR(20) NOT NULL,
            is_percentage  BOOLEAN DEFAULT FALSE,
            default_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
            description    TEXT,
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW(),
            updated_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 12. employee_salary_components ────────────────────────────────────
    op.execute("""
        CREATE TABLE employee_salary_components (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id        UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            component_id   UUID NOT NULL REFERENCES salary_components(id) ON DELETE CASCADE,
            amount         NUMERIC(12, 2) NOT NULL DEFAULT 0,
            effective_from DATE NOT NULL,
            effective_to   DATE,
            is_recurring   BOOLEAN DEFAULT TRUE,
            is_active      BOOLEAN DEFAULT TRUE,
            created_by     UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_employee_salary_components_user_id ON employee_salary_components(user_id)")

    # ── 13. monthly_salaries ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE monthly_salaries (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id             UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            month               INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
            year                INTEGER NOT NULL,
            base_salary         NUMERIC(12, 2) NOT NULL DEFAULT 0,
            total_bonuses       NUMERIC(12, 2) NOT NULL DEFAULT 0,
            total_allowances    NUMERIC(12, 2) NOT NULL DEFAULT 0,
            overtime_pay        NUMERIC(12, 2) NOT NULL DEFAULT 0,
            absence_deductions  NUMERIC(12, 2) NOT NULL DEFAULT 0,
            lateness_deductions NUMERIC(12, 2) NOT NULL DEFAULT 0,
            tax_deduction       NUMERIC(12, 2) NOT NULL DEFAULT 0,
            other_deductions    NUMERIC(12, 2) NOT NULL DEFAULT 0,
            total_deductions    NUMERIC(12, 2) NOT NULL DEFAULT 0,
            gross_salary        NUMERIC(12, 2) NOT NULL DEFAULT 0,
            net_salary          NUMERIC(12, 2) NOT NULL DEFAULT 0 CHECK (net_salary >= 0),
            working_days        INTEGER DEFAULT 0,
            present_days        INTEGER DEFAULT 0,
            absent_days         INTEGER DEFAULT 0,
            late_days           INTEGER DEFAULT 0,
            total_late_minutes  INTEGER DEFAULT 0,
            overtime_minutes    INTEGER DEFAULT 0,
            status              VARCHAR(20) NOT NULL DEFAULT 'calculated',
            calculated_by       UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_by         UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at         TIMESTAMPTZ,
            paid_by             UUID REFERENCES users(id) ON DELETE SET NULL,
            paid_at             TIMESTAMPTZ,
            payment_method      VARCHAR(50),
            payment_reference   VARCHAR(100),
            notes               TEXT,
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_monthly_salary_period UNIQUE (user_id, month, year)
        )
    """)
    op.execute("CREATE INDEX ix_monthly_salaries_period ON monthly_salaries(year, month)")

    # ── 14. salary_adjustments ────────────────────────────────────────────
    op.execute("""
        CREATE TABLE salary_adjustments (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id           UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            monthly_salary_id UUID REFERENCES monthly_salaries(id) ON DELETE SET NULL,
            adjustment_type   VARCHAR(20) NOT NULL,
            amount            NUMERIC(12, 2) NOT NULL,
            hours             NUMERIC(6, 2),
            reason            TEXT NOT NULL,
            month             INTEGER NOT NULL,
            year              INTEGER NOT NULL,
            is_applied        BOOLEAN DEFAULT FALSE,
            applied_at        TIMESTAMPTZ,
            created_by        UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at        TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_salary_adjustments_period ON salary_adjustments(user_id, year, month)")

    # ── 15. salary_configuration ──────────────────────────────────────────
    op.execute("""
        CREATE TABLE salary_configuration (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            config_key   VARCHAR(100) NOT NULL UNIQUE,
            config_value VARCHAR(100) NOT NULL,
            description  TEXT,
            updated_by   UUID REFERENCES users(id) ON DELETE SET NULL,
            updated_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 16. announcements ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE announcements (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            title         VARCHAR(200) NOT NULL,
            description   TEXT NOT NULL,
            date          DATE NOT NULL,
            department_id UUID REFERENCES departments(id) ON DELETE CASCADE,
            created_by    UUID REFERENCES users(id) ON DELETE SET NULL,
            is_active     BOOLEAN DEFAULT TRUE,
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_announcements_department_id ON announcements(department_id)")

    op.execute("""
        CREATE TABLE announcement_recipients (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            announcement_id UUID NOT NULL REFERENCES announcements(id) ON DELETE CASCADE,
            user_id         UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            is_read         BOOLEAN DEFAULT FALSE,
            read_at         TIMESTAMPTZ,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_announcement_recipient UNIQUE (announcement_id, user_id)
        )
    """)
    op.execute("CREATE INDEX ix_announcement_recipients_user_id ON announcement_recipients(user_id)")

    # ── 17. notifications ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id         UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id    UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type       VARCHAR(30) NOT NULL DEFAULT 'info',
            title      VARCHAR(200) NOT NULL,
            message    TEXT NOT NULL,
            related_id UUID,
            is_read    BOOLEAN DEFAULT FALSE,
            read_at    TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_notifications_user_unread ON notifications(user_id, is_read)")

    # ── 17a. messages ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE messages (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            sender_id   UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            receiver_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            message     TEXT NOT NULL,
            is_read     BOOLEAN DEFAULT FALSE,
            read_at     TIMESTAMPTZ,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_messages_pair ON messages(sender_id, receiver_id)")
    op.execute("CREATE INDEX ix_messages_receiver_unread ON messages(receiver_id, is_read)")

    # ── 18. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID REFERENCES users(id) ON DELETE SET NULL,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            ip_address  INET,
            user_agent  TEXT,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")

    # ══════════════════════════════════════════════════════════════════════
    # SEED DATA
    # ══════════════════════════════════════════════════════════════════════

    # Default shift
    op.execute("""
        INSERT INTO work_shifts (name, start_time, end_time, grace_period_minutes, is_default)
        VALUES ('General Shift', '08:00', '17:00', 15, TRUE)
    """)

    # Payroll configuration
    op.execute("""
        INSERT INTO salary_configuration (config_key, config_value, description) VALUES
        ('tax_rate',                     '10',  'Tax percentage applied to gross salary'),
        ('absence_deduction_per_day',    '0',   'Fixed deduction per absent day; 0 uses the daily rate'),
        ('latency_deduction_per_minute', '1',   'Deduction per late minute beyond the grace period'),
        ('overtime_rate_multiplier',     '1.5', 'Multiplier on the per-minute rate for overtime'),
        ('working_days_per_month',       '22',  'Working days used to derive the daily rate'),
        ('grace_period_minutes',         '15',  'Late minutes forgiven per day')
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "messages",
        "notifications",
        "announcement_recipients",
        "announcements",
        "salary_configuration",
        "salary_adjustments",
        "monthly_salaries",
        "employee_salary_components",
        "salary_components",
        "expenses",
        "applications",
        "holidays",
        "attendance_summaries",
        "attendance_corrections",
        "attendance_records",
        "working_days",
        "work_shifts",
        "user_sessions",
        "users",
        "departments",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
