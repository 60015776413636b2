"""
Service for seeding demo items, controls and implementation status.
"""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from app.models.implementation import (
    ControlImplementation,
    ControlStatus,
    SubControlImplementation,
)
from app.models.item import CriticalityLevel, Item
from app.models.security_control import SecurityControl, SubControl
from app.services.backup_service import BackupService
from app.services.catalog_service import commit_or_raise

logger = logging.getLogger(__name__)

DEMO_ITEMS = [
    {
        "name": "Customer Portal Web Application",
        "description": "Public-facing web application for customer self-service",
        "category": "Web Application",
        "item_type": "Application",
        "owner": "Engineering Team",
        "criticality": CriticalityLevel.HIGH,
        "tags": ["customer-facing", "pci"],
    },
    {
        "name": "Payment Processing System",
        "description": "Core payment processing infrastructure",
        "category": "Financial System",
        "item_type": "System",
        "owner": "Finance Team",
        "criticality": CriticalityLevel.CRITICAL,
        "tags": ["pci"],
    },
    {
        "name": "Employee Database",
        "description": "Internal HR database containing employee records",
        "category": "Database",
        "item_type": "Database",
        "owner": "HR Team",
        "criticality": CriticalityLevel.HIGH,
        "tags": ["pii", "internal"],
    },
    {
        "name": "Marketing Website",
        "description": "Public marketing and company information website",
        "category": "Web Application",
        "item_type": "Application",
        "owner": "Marketing Team",
        "criticality": CriticalityLevel.MEDIUM,
        "tags": ["public"],
    },
]

DEMO_CONTROLS = [
    {
        "name": "Access Control",
        "description": "User authentication and authorization",
        "sub_controls": [
            ("Multi-Factor Authentication", "Require multiple forms of authentication for access"),
            ("Role-Based Access Control", "Assign permissions based on user roles and responsibilities"),
            ("Privileged Access Management", "Control and monitor access to privileged accounts"),
        ],
    },
    {
        "name": "Data Encryption",
        "description": "Encryption of sensitive data",
        "sub_controls": [
            ("Data at Rest Encryption", "Encrypt sensitive data stored in databases and files"),
            ("Data in Transit Encryption", "Encrypt data being transmitted over networks"),
            ("Key Management", "Secure generation, storage, and rotation of encryption keys"),
        ],
    },
    {
        "name": "Vulnerability Management",
        "description": "Regular vulnerability scanning and patching",
        "sub_controls": [
            ("Vulnerability Scanning", "Regular automated scanning for security vulnerabilities"),
            ("Patch Management", "Timely application of security patches and updates"),
            ("Penetration Testing", "Regular security testing by authorized personnel"),
        ],
    },
    {
        "name": "Audit Logging",
        "description": "System and user activity logging",
        "sub_controls": [
            ("Security Event Logging", "Log all security-relevant events and activities"),
            ("Log Monitoring", "Real-time monitoring and analysis of security logs"),
            ("Log Retention", "Secure long-term storage of audit logs"),
        ],
    },
    {
        "name": "Backup and Recovery",
        "description": "Data backup and disaster recovery",
        "sub_controls": [
            ("Data Backup", "Regular automated backup of critical data"),
            ("Disaster Recovery", "Procedures for recovering from major incidents"),
            ("Recovery Testing", "Regular testing of backup and recovery procedures"),
        ],
    },
]

# item name -> control name -> (status, notes)
DEMO_STATUSES: Dict[str, Dict[str, tuple]] = {
    "Customer Portal Web Application": {
        "Access Control": ("green", "Multi-factor authentication implemented"),
        "Data Encryption": ("green", "TLS 1.3 and AES-256 encryption in place"),
        "Vulnerability Management": ("yellow", "Weekly scans running, CI/CD integration in progress"),
        "Audit Logging": ("green", "Comprehensive audit logging implemented"),
        "Backup and Recovery": ("yellow", "Daily backups configured, testing recovery procedures"),
    },
    "Payment Processing System": {
        "Access Control": ("green", "Hardware security modules and biometric auth"),
        "Data Encryption": ("green", "PCI DSS compliant encryption and tokenization"),
        "Vulnerability Management": ("green", "Automated vulnerability scanning with immediate alerts"),
        "Audit Logging": ("green", "Tamper-evident transaction logging"),
        "Backup and Recovery": ("green", "Real-time replication and tested disaster recovery"),
    },
    "Employee Database": {
        "Access Control": ("green", "Active Directory integration with role-based access"),
        "Data Encryption": ("yellow", "Database encryption enabled, reviewing key management"),
        "Vulnerability Management": ("yellow", "Monthly scans scheduled, working on patch automation"),
        "Audit Logging": ("green", "All HR database access logged and monitored"),
        "Backup and Recovery": ("red", "Backup infrastructure pending budget approval"),
    },
    "Marketing Website": {
        "Access Control": ("yellow", "Basic authentication, planning MFA implementation"),
        "Data Encryption": ("green", "HTTPS enabled, no sensitive data collected"),
        "Vulnerability Management": ("yellow", "Monthly scans running, working on automated patching"),
        "Audit Logging": ("yellow", "Basic web server logs, enhancing monitoring"),
        "Backup and Recovery": ("green", "Static site with automated daily backups"),
    },
}


def seed_demo_data(db: Session, force: bool = False) -> Dict[str, int]:
    """
    Seed demo items, controls, sub-controls and implementations.

    Skipped when controls already exist unless force is set, in which case
    every table is wiped first. Sub-control statuses are derived from the
    parent so that green parents only have green sub-controls.
    """
    existing = db.query(SecurityControl).count()
    if existing and not force:
        logger.info(f"Security controls already exist ({existing} controls). Skipping seed.")
        return {}
    if force:
        BackupService(db).wipe()

    logger.info("Seeding demo data...")

    items = {}
    for data in DEMO_ITEMS:
        item = Item(**data)
        db.add(item)
        items[item.name] = item

    controls = {}
    sub_controls = {}
    for position, data in enumerate(DEMO_CONTROLS):
        control = SecurityControl(
            name=data["name"], description=data["description"], sort_order=position
        )
        db.add(control)
        controls[control.name] = control
        sub_controls[control.name] = [
            SubControl(control=control, name=name, description=description)
            for name, description in data["sub_controls"]
        ]
    db.flush()  # Get IDs

    implementation_count = 0
    sub_implementation_count = 0
    for item_name, statuses in DEMO_STATUSES.items():
        item = items[item_name]
        for control_name, (status, notes) in statuses.items():
            control = controls[control_name]
            db.add(
                ControlImplementation(
                    item_id=item.id,
                    control_id=control.id,
                    status=ControlStatus(status),
                    notes=notes,
                )
            )
            implementation_count += 1
            if status == "red":
                continue
            for index, sub_control in enumerate(sub_controls[control_name]):
                sub_status = ControlStatus.GREEN
                if status == "yellow" and index > 0:
                    sub_status = ControlStatus.YELLOW
                db.add(
                    SubControlImplementation(
                        item_id=item.id,
                        sub_control_id=sub_control.id,
                        status=sub_status,
                    )
                )
                sub_implementation_count += 1

    commit_or_raise(db, "seed demo data")

    summary = {
        "items": len(items),
        "security_controls": len(controls),
        "sub_controls": sum(len(v) for v in sub_controls.values()),
        "control_implementations": implementation_count,
        "sub_control_implementations": sub_implementation_count,
    }
    logger.info(f"Seeded demo data: {summary}")
    return summary
