"""Request and lookup helpers shared by the test modules."""

import io


def reload_user(storage, user_id):
    """Read a user through a fresh session so nothing comes from the identity map."""
    storage.close()
    return storage.get_user(user_id)


def image(name="avatar.png", content=b"\x89PNG\r\n\x1a\n fake"):
    return (io.BytesIO(content), name)


def login(client, username="alice", email="alice@x.com", password="Secret1"):
    return client.post(
        "/api/v1/users/login",
        json={"username": username, "email": email, "password": password},
    )


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def delete_user(storage, user_id):
    session = storage.get_session()
    session.delete(storage.get_user(user_id))
    storage.save()
