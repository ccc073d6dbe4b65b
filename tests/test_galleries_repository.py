import asyncio
import uuid

import pytest
from sqlalchemy import Text, func, select

from pixhub.core.errors import InvalidArgumentError, NotFoundError
from pixhub.models.gallery import Gallery, GalleryMedia
from pixhub.services.galleries import GalleryRepository
from pixhub.services.identity import SqlIdentityGateway


def _media(n: int, owner_id: uuid.UUID) -> GalleryMedia:
    return GalleryMedia(
        title=f"photo-{n}.png",
        url=f"/uploads/key-{n}.png",
        storage_key=f"key-{n}.png",
        type="image",
        owner_id=owner_id,
        is_favorite=False,
    )


async def test_create_starts_with_empty_media(repository: GalleryRepository, owner_id) -> None:
    gallery = await repository.create("Holidays", None, owner_id)

    assert isinstance(gallery.id, uuid.UUID)
    assert gallery.title == "Holidays"
    assert gallery.description == ""
    assert gallery.owner_id == owner_id
    assert gallery.media == []
    assert gallery.created_at is not None


async def test_create_unknown_owner_persists_nothing(repository: GalleryRepository, db) -> None:
    with pytest.raises(NotFoundError):
        await repository.create("Holidays", "", uuid.uuid4())

    count = (await db.execute(select(func.count()).select_from(Gallery))).scalar_one()
    assert count == 0


async def test_create_rejects_blank_title(repository: GalleryRepository, owner_id) -> None:
    with pytest.raises(InvalidArgumentError):
        await repository.create("   ", "", owner_id)


async def test_list_by_owner_only_returns_owned(repository: GalleryRepository, make_user, owner_id) -> None:
    other_id = await make_user("u2@example.com")
    first = await repository.create("First", "", owner_id)
    second = await repository.create("Second", "", owner_id)
    await repository.create("Not mine", "", other_id)

    galleries = await repository.list_by_owner(owner_id)

    assert [g.id for g in galleries] == [first.id, second.id]
    assert await repository.list_by_owner(uuid.uuid4()) == []


async def test_append_keeps_upload_order(repository: GalleryRepository, owner_id) -> None:
    gallery = await repository.create("Trip", "", owner_id)
    for n in range(3):
        await repository.append_media(gallery.id, _media(n, owner_id))

    (listed,) = await repository.list_by_owner(owner_id)
    assert [m.title for m in listed.media] == ["photo-0.png", "photo-1.png", "photo-2.png"]
    assert [m.id for m in listed.media] == sorted(m.id for m in listed.media)


async def test_append_to_missing_gallery_fails(repository: GalleryRepository, owner_id) -> None:
    with pytest.raises(NotFoundError):
        await repository.append_media(uuid.uuid4(), _media(0, owner_id))


async def test_concurrent_appends_are_all_kept(sessionmaker, repository: GalleryRepository, owner_id) -> None:
    gallery = await repository.create("Party", "", owner_id)
    total = 12

    async def append(n: int) -> GalleryMedia:
        async with sessionmaker() as session:
            repo = GalleryRepository(session, SqlIdentityGateway(session))
            return await repo.append_media(gallery.id, _media(n, owner_id))

    appended = await asyncio.gather(*(append(n) for n in range(total)))

    async with sessionmaker() as session:
        (listed,) = await GalleryRepository(session, SqlIdentityGateway(session)).list_by_owner(owner_id)

    assert len(listed.media) == total
    assert sorted(m.title for m in listed.media) == sorted(f"photo-{n}.png" for n in range(total))
    assert {m.id for m in listed.media} == {m.id for m in appended}


async def test_delete_is_idempotent_and_returns_keys(repository: GalleryRepository, owner_id) -> None:
    gallery = await repository.create("Trip", "", owner_id)
    await repository.append_media(gallery.id, _media(1, owner_id))
    await repository.append_media(gallery.id, _media(2, owner_id))

    assert await repository.delete(gallery.id) == ["key-1.png", "key-2.png"]
    assert await repository.delete(gallery.id) == []
    assert await repository.list_by_owner(owner_id) == []
    assert await repository.referenced_storage_keys() == set()


async def test_title_is_stored_as_sent(repository: GalleryRepository, owner_id) -> None:
    gallery = await repository.create("  Trip  ", "", owner_id)
    (listed,) = await repository.list_by_owner(owner_id)
    assert gallery.title == "  Trip  "
    assert listed.title == "  Trip  "


async def test_long_titles_are_accepted(repository: GalleryRepository, owner_id) -> None:
    long_title = "Summer " * 100
    gallery = await repository.create(long_title, "", owner_id)
    media = GalleryMedia(
        title="a" * 1000 + ".png",
        url="/uploads/long.png",
        storage_key="long.png",
        type="image",
        owner_id=owner_id,
    )
    await repository.append_media(gallery.id, media)

    (listed,) = await repository.list_by_owner(owner_id)
    assert listed.title == long_title
    assert listed.media[0].title == "a" * 1000 + ".png"


def test_title_columns_have_no_length_limit() -> None:
    assert isinstance(Gallery.__table__.c.title.type, Text)
    assert isinstance(GalleryMedia.__table__.c.title.type, Text)
