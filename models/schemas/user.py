from marshmallow import Schema, fields, pre_load, EXCLUDE


def _norm(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserRegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(required=True, data_key="fullName")
    username = fields.String(required=True)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("username", "email"):
            if key in data:
                data[key] = _norm(data[key])
        if isinstance(data.get("fullName"), str):
            data["fullName"] = data["fullName"].strip()
        return data


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String()
    email = fields.String()
    password = fields.String()


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(data_key="oldPassword")
    new_password = fields.String(data_key="newPassword")


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(data_key="fullName")
    email = fields.Email()
    password = fields.String(load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        if "email" in data:
            data["email"] = _norm(data["email"])
        if isinstance(data.get("fullName"), str):
            data["fullName"] = data["fullName"].strip()
        return data


class UserOutSchema(Schema):
    """Public view of a user: no password hash, no refresh token."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
