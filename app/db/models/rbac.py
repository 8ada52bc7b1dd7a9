from sqlalchemy import Column, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base_class import Base, IdMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin):
	__tablename__ = "users"

	email = Column(String, unique=True, index=True, nullable=False)
	name = Column(String, nullable=False)
	phone = Column(String, nullable=True)
	status = Column(String, nullable=False, default="ACTIVE")

	memberships = relationship("BusinessUser", back_populates="user")
	roles = relationship("UserRole", back_populates="user")


class BusinessUser(Base, IdMixin, TimestampMixin):
	__tablename__ = "business_users"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
	status = Column(String, nullable=False, default="ACTIVE")
	is_owner = Column(Boolean, nullable=False, default=False)

	user = relationship("User", back_populates="memberships")


class Role(Base, IdMixin, TimestampMixin):
	__tablename__ = "roles"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	is_system = Column(Boolean, nullable=False, default=False)


class Permission(Base, IdMixin, TimestampMixin):
	__tablename__ = "permissions"

	code = Column(String, unique=True, nullable=False)
	description = Column(String, nullable=True)


class RolePermission(Base, IdMixin, TimestampMixin):
	__tablename__ = "role_permissions"

	role_id = Column(String(36), ForeignKey("roles.id"), nullable=False, index=True)
	permission_id = Column(String(36), ForeignKey("permissions.id"), nullable=False, index=True)


class UserRole(Base, IdMixin, TimestampMixin):
	__tablename__ = "user_roles"

	user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
	role_id = Column(String(36), ForeignKey("roles.id"), nullable=False, index=True)
	# Null branch means the role applies to every branch of the business
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)

	user = relationship("User", back_populates="roles")
	role = relationship("Role")
