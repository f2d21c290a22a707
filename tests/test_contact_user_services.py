"""
Tests for ContactService and UserService.
"""
import pytest

from buildflow.models import Contact, ContactLabel
from buildflow.domain.dto import ContactRequestDto, CreateUserRequest
from buildflow.domain.entities import Address
from buildflow.domain.exceptions import (
    AlreadyPersistedError,
    DuplicateEmailError,
    DuplicateUserError,
    NotPersistedError,
    ValidationError,
)
from buildflow.domain.services import ContactService, UserService


@pytest.fixture
def contact_service(db_session, clock):
    return ContactService(db_session, clock)


class TestContactLabels:
    """Labels keep insertion order and never hold duplicates."""

    def test_duplicates_collapse(self):
        contact = Contact(
            first_name="Lee", last_name="Lender", email="lee@example.com",
            labels=[ContactLabel.SUPPLIER, ContactLabel.SUPPLIER, ContactLabel.LENDER],
        )
        assert list(contact.labels) == [ContactLabel.SUPPLIER, ContactLabel.LENDER]

    def test_add_label_reports_change(self, make_contact):
        contact = make_contact()
        assert contact.add_label(ContactLabel.OWNER) is True
        assert contact.add_label(ContactLabel.OWNER) is False
        assert list(contact.labels) == [ContactLabel.OWNER]


class TestContactService:

    def test_save_assigns_id_and_timestamps(self, contact_service, make_contact, clock):
        contact = contact_service.save(make_contact(address=Address(city="Quebec", country="CA")))
        assert contact.id is not None
        assert contact.created_at == clock.now
        assert contact.last_updated_at == clock.now
        assert contact_service.is_persisted(contact)

    def test_save_twice_rejected(self, contact_service, make_contact):
        contact = contact_service.save(make_contact())
        with pytest.raises(AlreadyPersistedError, match="Contact is already persisted."):
            contact_service.save(contact)

    def test_duplicate_email_rejected(self, contact_service, make_contact):
        contact_service.save(make_contact(email="dup@example.com"))
        with pytest.raises(DuplicateEmailError) as exc_info:
            contact_service.save(make_contact(email="dup@example.com"))
        assert exc_info.value.code == "DUPLICATE_EMAIL"
        assert "A contact with this email already exists." in exc_info.value.message

    def test_blank_name_rejected(self, contact_service, make_contact):
        with pytest.raises(ValidationError):
            contact_service.save(make_contact(first_name="   "))

    def test_update_requires_persisted(self, contact_service, make_contact):
        with pytest.raises(NotPersistedError, match="Contact must be already persisted."):
            contact_service.update(make_contact())

    def test_update_refreshes_last_updated_at(self, contact_service, make_contact):
        contact = contact_service.save(make_contact())
        created_at, first_update = contact.created_at, contact.last_updated_at
        contact.phone = "555-0100"
        contact_service.update(contact)
        assert contact.created_at == created_at
        assert contact.last_updated_at > first_update

    def test_update_to_taken_email_rejected(self, contact_service, make_contact):
        contact_service.save(make_contact(email="a@example.com"))
        other = contact_service.save(make_contact(email="b@example.com"))
        other.email = "a@example.com"
        with pytest.raises(DuplicateEmailError):
            contact_service.update(other)

        other.email = "b@example.com"
        other.phone = "555-0199"
        contact_service.update(other)
        assert contact_service.find_by_email("b@example.com").phone == "555-0199"

    def test_replace_labels(self, contact_service, db_session, make_contact):
        contact = contact_service.save(make_contact(labels=[ContactLabel.SUPPLIER]))
        contact.set_labels([ContactLabel.LENDER, ContactLabel.LENDER, ContactLabel.OTHER])
        contact_service.update(contact)
        db_session.expire_all()
        reloaded = contact_service.find_by_id(contact.id)
        assert list(reloaded.labels) == [ContactLabel.LENDER, ContactLabel.OTHER]

    def test_address_round_trip(self, contact_service, db_session, make_contact):
        address = Address(street_number="221B", street_name="Baker Street", city="London")
        contact = contact_service.save(make_contact(address=address))
        db_session.expire_all()
        assert contact_service.find_by_id(contact.id).address == address

    def test_delete(self, contact_service, make_contact):
        contact = contact_service.save(make_contact(email="gone@example.com"))
        contact_service.delete(contact)
        assert not contact_service.exists_by_email("gone@example.com")
        assert contact_service.find_by_email("gone@example.com") is None

    def test_delete_requires_persisted(self, contact_service, make_contact):
        with pytest.raises(NotPersistedError):
            contact_service.delete(make_contact())


class TestUserCreation:

    def test_from_contact_uses_email_as_username(self, make_contact):
        contact = make_contact(email="ann@example.com")
        user = UserService.from_contact(contact)
        assert user.username == "ann@example.com"
        assert user.email == "ann@example.com"
        assert user.contact is contact
        assert user.id is None

    def test_new_registered_builder(self, builder):
        assert builder.id is not None
        assert builder.registered is True
        assert builder.username == "builder@example.com"
        assert ContactLabel.BUILDER in builder.contact.labels

    def test_new_unregistered_owner(self, owner):
        assert owner.registered is False
        assert list(owner.contact.labels) == [ContactLabel.OWNER]

    def test_labels_merge_without_duplicates(self, user_service, make_contact):
        contact = make_contact(labels=[ContactLabel.SUPPLIER])
        user = user_service.new_unregistered_user(
            contact, ContactLabel.SUPPLIER, ContactLabel.SUBCONTRACTOR
        )
        assert list(user.contact.labels) == [ContactLabel.SUPPLIER, ContactLabel.SUBCONTRACTOR]

    def test_persisted_contact_is_reused(self, user_service, contact_service, make_contact):
        contact = contact_service.save(make_contact(email="known@example.com"))
        user = user_service.new_registered_owner(contact)
        assert user.contact_id == contact.id
        assert ContactLabel.OWNER in contact.labels

    def test_duplicate_username_rejected(self, user_service, builder, make_contact):
        with pytest.raises(DuplicateUserError, match="Account with username 'builder@example.com' already exists!"):
            user_service.new_registered_builder(make_contact(email="builder@example.com"))

    def test_create_user_from_request(self, user_service):
        request = CreateUserRequest(
            username="carpenter",
            registered=True,
            contact=ContactRequestDto(
                first_name="Cara",
                last_name="Penter",
                email="cara@example.com",
                labels=["subcontractor", "SUBCONTRACTOR", "astronaut"],
            ),
        )
        response = user_service.create_user(request)
        assert response.user.username == "carpenter"
        assert response.user.registered is True
        assert response.user.contact.labels == ["SUBCONTRACTOR"]
        assert user_service.exists_by_username("carpenter")

    def test_create_user_with_taken_contact_email(self, user_service, contact_service, make_contact):
        contact_service.save(make_contact(email="taken@example.com"))
        request = CreateUserRequest(contact=ContactRequestDto(
            first_name="New", last_name="Person", email="taken@example.com"
        ))
        with pytest.raises(DuplicateUserError) as exc_info:
            user_service.create_user(request)
        assert exc_info.value.field == "email"


class TestUserLifecycle:

    def test_update_requires_persisted(self, user_service, make_contact):
        with pytest.raises(NotPersistedError, match="User must be already persisted."):
            user_service.update(user_service.from_contact(make_contact()))

    def test_update_refreshes_user_and_contact(self, user_service, builder):
        user_stamp = builder.last_updated_at
        contact_stamp = builder.contact.last_updated_at
        builder.registered = False
        user_service.update(builder)
        assert builder.last_updated_at > user_stamp
        assert builder.contact.last_updated_at > contact_stamp

    def test_update_to_taken_username_rejected(self, user_service, builder, owner):
        owner.username = builder.username
        with pytest.raises(DuplicateUserError) as exc_info:
            user_service.update(owner)
        assert exc_info.value.field == "username"

    def test_update_to_taken_email_rejected(self, user_service, builder, owner):
        owner.email = "builder@example.com"
        with pytest.raises(DuplicateUserError) as exc_info:
            user_service.update(owner)
        assert exc_info.value.field == "email"

    def test_update_to_taken_contact_email_rejected(self, user_service, builder, owner):
        owner.contact.email = "builder@example.com"
        with pytest.raises(DuplicateUserError, match="Account with email 'builder@example.com' already exists!"):
            user_service.update(owner)

    def test_update_keeping_own_username_and_email(self, user_service, owner):
        owner.registered = True
        assert user_service.update(owner).registered is True

    def test_delete_keeps_contact(self, user_service, contact_service, builder):
        user_id = builder.id
        user_service.delete(builder)
        assert user_service.find_by_id(user_id) is None
        assert not user_service.exists_by_id(user_id)
        assert contact_service.exists_by_email("builder@example.com")

    def test_queries(self, user_service, builder, owner):
        assert user_service.find_by_email("owner@example.com").id == owner.id
        assert user_service.find_by_username("builder@example.com").id == builder.id
        assert user_service.exists_by_email("builder@example.com")
        assert not user_service.exists_by_username("nobody")
        assert user_service.get_user_dto_by_username("nobody") is None
        dto = user_service.get_user_dto_by_username("owner@example.com")
        assert dto.contact.labels == ["OWNER"]

    def test_all_user_dtos_sorted_by_username(self, user_service, builder, owner, supplier):
        usernames = [dto.username for dto in user_service.get_all_user_dtos()]
        assert usernames == sorted(usernames)
        assert len(usernames) == 3
