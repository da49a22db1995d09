from sqlalchemy import Column, BigInteger

from ocsp_responder.core.database import Base, UTCDateTime


class RevokedCertificate(Base):
    """
    One row per tracked certificate.

    revoked_at is the only status signal: NULL means the certificate is
    known and not revoked, any value means revoked at that instant.
    """
    __tablename__ = "revoked"

    serial = Column(BigInteger, primary_key=True, autoincrement=False)
    revoked_at = Column(UTCDateTime(), nullable=True)

    def __repr__(self):
        return f"<RevokedCertificate(serial={self.serial}, revoked_at={self.revoked_at})>"
