"""
Ledger state addressing.

Every piece of certificate registry state lives at a 70 character hex
address built from the family namespace prefix, a reserved byte, a per-entity
type prefix and a truncated hash of the entity identifier. Transactions must
declare every address they read (inputs) and write (outputs); the composers
at the bottom of this module encode those footprints per action kind.
"""

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

FAMILY_NAME = "certificate_registry"
FAMILY_VERSION = "0.1"

NAMESPACE_PREFIX_LENGTH = 6
RESERVED_SPACE = "00"
IDENTIFIER_HASH_LENGTH = 60
ADDRESS_LENGTH = 70

_ADDRESS_PATTERN = re.compile(r"^[0-9a-f]{70}$")


def _hash(value: str, length: int) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


def namespace_prefix() -> str:
    """Get the 6 character prefix owned by the certificate registry family."""
    return _hash(FAMILY_NAME, NAMESPACE_PREFIX_LENGTH)


class EntityType(str, Enum):
    """Kinds of ledger state, each owning a disjoint address prefix."""
    AGENT = "agent"
    CERTIFICATE = "certificate"
    ORGANIZATION = "organization"
    STANDARD = "standard"
    CERTIFICATE_REQUEST = "certificate_request"
    ASSERTION = "assertion"

    @property
    def prefix(self) -> str:
        """Two character type prefix."""
        return _TYPE_PREFIXES[self]


_TYPE_PREFIXES = {
    EntityType.AGENT: "00",
    EntityType.CERTIFICATE: "01",
    EntityType.ORGANIZATION: "02",
    EntityType.STANDARD: "03",
    EntityType.CERTIFICATE_REQUEST: "04",
    EntityType.ASSERTION: "05",
}


def derive_address(entity_type: EntityType, identifier: str) -> str:
    """
    Derive the state address of an entity.

    Args:
        entity_type: Kind of entity (or its string value)
        identifier: Entity identifier, e.g. an agent public key or an
            organization id. Any string is accepted.

    Returns:
        70 character lowercase hex address
    """
    entity_type = EntityType(entity_type)
    return (
        namespace_prefix()
        + RESERVED_SPACE
        + entity_type.prefix
        + _hash(identifier, IDENTIFIER_HASH_LENGTH)
    )


def make_agent_address(public_key: str) -> str:
    return derive_address(EntityType.AGENT, public_key)


def make_certificate_address(certificate_id: str) -> str:
    return derive_address(EntityType.CERTIFICATE, certificate_id)


def make_organization_address(organization_id: str) -> str:
    return derive_address(EntityType.ORGANIZATION, organization_id)


def make_standard_address(standard_id: str) -> str:
    return derive_address(EntityType.STANDARD, standard_id)


def make_request_address(request_id: str) -> str:
    return derive_address(EntityType.CERTIFICATE_REQUEST, request_id)


def make_assertion_address(assertion_id: str) -> str:
    return derive_address(EntityType.ASSERTION, assertion_id)


def is_address(value: str) -> bool:
    """Check that a value is a well formed address in this family's namespace."""
    return bool(_ADDRESS_PATTERN.match(value)) and value.startswith(namespace_prefix())


# =============================================================================
# Per-action address footprints
# =============================================================================

@dataclass(frozen=True)
class AddressSet:
    """Declared read (inputs) and write (outputs) addresses of one transaction."""
    inputs: List[str]
    outputs: List[str]


def agent_create_addresses(public_key: str) -> AddressSet:
    agent = make_agent_address(public_key)
    return AddressSet(inputs=[agent], outputs=[agent])


def agent_authorize_addresses(
    authorizer_public_key: str,
    organization_id: str,
    authorized_public_key: str,
) -> AddressSet:
    """Footprint of an admin authorizing another agent for an organization."""
    organization = make_organization_address(organization_id)
    authorized = make_agent_address(authorized_public_key)
    return AddressSet(
        inputs=[make_agent_address(authorizer_public_key), organization, authorized],
        outputs=[organization, authorized],
    )


def organization_create_addresses(public_key: str, organization_id: str) -> AddressSet:
    addresses = [
        make_agent_address(public_key),
        make_organization_address(organization_id),
    ]
    return AddressSet(inputs=list(addresses), outputs=list(addresses))


def certificate_issue_addresses(
    public_key: str,
    certifying_body_id: str,
    certificate_id: str,
    factory_id: str,
    request_id: Optional[str] = None,
) -> AddressSet:
    """
    Footprint of issuing a certificate.

    When the certificate answers a factory's request, the request record is
    both read and closed, so it appears on both sides.
    """
    certificate = make_certificate_address(certificate_id)
    inputs = [
        make_agent_address(public_key),
        make_organization_address(certifying_body_id),
        certificate,
        make_organization_address(factory_id),
    ]
    outputs = [certificate]
    if request_id is not None:
        request = make_request_address(request_id)
        inputs.append(request)
        outputs.append(request)
    return AddressSet(inputs=inputs, outputs=outputs)


def certificate_update_addresses(
    public_key: str,
    certifying_body_id: str,
    certificate_id: str,
) -> AddressSet:
    certificate = make_certificate_address(certificate_id)
    return AddressSet(
        inputs=[
            make_agent_address(public_key),
            make_organization_address(certifying_body_id),
            certificate,
        ],
        outputs=[certificate],
    )


def standard_create_addresses(
    public_key: str,
    standard_id: str,
    organization_id: str,
) -> AddressSet:
    standard = make_standard_address(standard_id)
    return AddressSet(
        inputs=[
            standard,
            make_agent_address(public_key),
            make_organization_address(organization_id),
        ],
        outputs=[standard],
    )


def accreditation_create_addresses(
    public_key: str,
    standard_id: str,
    certifying_body_id: str,
    standards_body_id: str,
) -> AddressSet:
    """Footprint of a standards body accrediting a certifying body."""
    certifying_body = make_organization_address(certifying_body_id)
    return AddressSet(
        inputs=[
            make_standard_address(standard_id),
            make_agent_address(public_key),
            certifying_body,
            make_organization_address(standards_body_id),
        ],
        outputs=[certifying_body],
    )


def assertion_create_addresses(public_key: str, assertion_id: str) -> AddressSet:
    addresses = [
        make_agent_address(public_key),
        make_assertion_address(assertion_id),
    ]
    return AddressSet(inputs=list(addresses), outputs=list(addresses))
