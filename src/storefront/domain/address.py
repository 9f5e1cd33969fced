from __future__ import annotations

import warnings
from dataclasses import dataclass, replace

from .clone import CloneContext, CloneResult


@dataclass(frozen=True, slots=True)
class ISOCountry:
    """ISO 3166-1 alpha-2 код страны."""

    alpha2: str
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "alpha2", self.alpha2.strip().upper())


@dataclass(frozen=True, slots=True)
class State:
    abbreviation: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Country:
    abbreviation: str
    name: str | None = None


@dataclass(slots=True)
class Phone:
    phone_number: str | None = None
    country_code: str | None = None
    extension: str | None = None
    is_default: bool = False
    is_active: bool = True
    id: int | None = None


def _deprecated(old: str, new: str) -> None:
    warnings.warn(f"Address.{old} устарел, используйте Address.{new}", DeprecationWarning, stacklevel=3)


@dataclass(slots=True)
class Address:
    id: int | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    address_line3: str | None = None
    city: str | None = None
    # ISO 3166-2, например "US-TX"
    iso_country_subdivision: str | None = None
    state_province_region: str | None = None
    postal_code: str | None = None
    county: str | None = None
    zip_four: str | None = None
    iso_country_alpha2: ISOCountry | None = None
    tokenized_address: str | None = None
    standardized: bool | None = None
    company_name: str | None = None
    is_default: bool = False
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    phone_primary: Phone | None = None
    phone_secondary: Phone | None = None
    phone_fax: Phone | None = None
    email_address: str | None = None
    is_business: bool = False
    is_street: bool = False
    is_mailing: bool = False
    verification_level: str | None = None
    is_active: bool = True

    @property
    def state(self) -> State | None:
        _deprecated("state", "iso_country_subdivision")
        if not self.iso_country_subdivision:
            return None
        abbreviation = self.iso_country_subdivision.rsplit("-", 1)[-1]
        return State(abbreviation=abbreviation, name=self.state_province_region)

    @state.setter
    def state(self, value: State | None) -> None:
        _deprecated("state", "iso_country_subdivision")
        if value is None:
            self.iso_country_subdivision = None
            self.state_province_region = None
            return
        if self.iso_country_alpha2 is not None:
            self.iso_country_subdivision = f"{self.iso_country_alpha2.alpha2}-{value.abbreviation}"
        else:
            self.iso_country_subdivision = value.abbreviation
        self.state_province_region = value.name

    @property
    def country(self) -> Country | None:
        _deprecated("country", "iso_country_alpha2")
        if self.iso_country_alpha2 is None:
            return None
        return Country(abbreviation=self.iso_country_alpha2.alpha2, name=self.iso_country_alpha2.name)

    @country.setter
    def country(self, value: Country | None) -> None:
        _deprecated("country", "iso_country_alpha2")
        if value is None:
            self.iso_country_alpha2 = None
        else:
            self.iso_country_alpha2 = ISOCountry(alpha2=value.abbreviation, name=value.name)

    def _phone_number(self, slot: str) -> str | None:
        phone = getattr(self, slot)
        return phone.phone_number if phone is not None else None

    def _set_phone_number(self, slot: str, number: str | None) -> None:
        if number is None:
            setattr(self, slot, None)
            return
        phone = getattr(self, slot)
        if phone is None:
            setattr(self, slot, Phone(phone_number=number))
        else:
            phone.phone_number = number

    @property
    def primary_phone(self) -> str | None:
        _deprecated("primary_phone", "phone_primary")
        return self._phone_number("phone_primary")

    @primary_phone.setter
    def primary_phone(self, value: str | None) -> None:
        _deprecated("primary_phone", "phone_primary")
        self._set_phone_number("phone_primary", value)

    @property
    def secondary_phone(self) -> str | None:
        _deprecated("secondary_phone", "phone_secondary")
        return self._phone_number("phone_secondary")

    @secondary_phone.setter
    def secondary_phone(self, value: str | None) -> None:
        _deprecated("secondary_phone", "phone_secondary")
        self._set_phone_number("phone_secondary", value)

    @property
    def fax(self) -> str | None:
        _deprecated("fax", "phone_fax")
        return self._phone_number("phone_fax")

    @fax.setter
    def fax(self, value: str | None) -> None:
        _deprecated("fax", "phone_fax")
        self._set_phone_number("phone_fax", value)

    def create_or_retrieve_copy_instance(self, context: CloneContext) -> CloneResult[Address]:
        existing = context.lookup(self)
        if existing is not None:
            return CloneResult(existing, already_cloned=True)

        copy = replace(
            self,
            id=None,
            phone_primary=replace(self.phone_primary, id=None) if self.phone_primary else None,
            phone_secondary=replace(self.phone_secondary, id=None) if self.phone_secondary else None,
            phone_fax=replace(self.phone_fax, id=None) if self.phone_fax else None,
        )
        context.remember(self, copy)
        return CloneResult(copy)
