"""
User administration statements (CREATE USER, GRANT, REVOKE...).
"""

import logging
from typing import Optional

from ...core.exceptions import QueryError, ValidationError
from .result_set import ResultSet

logger = logging.getLogger(__name__)

PRIVILEGE_READ = "READ"
PRIVILEGE_WRITE = "WRITE"
PRIVILEGE_ALL = "ALL"

VALID_PRIVILEGES = (PRIVILEGE_READ, PRIVILEGE_WRITE, PRIVILEGE_ALL)


class Admin:
    """Templates user and privilege statements and runs them server-wide."""

    def __init__(self, client):
        self.client = client

    def _execute(self, statement: str) -> ResultSet:
        """Run a server-wide statement and raise its error, if any."""
        result = self.client.query(None, statement)
        try:
            return result.raise_for_errors()
        except QueryError:
            result.close()
            raise

    def create_user(self, username: str, password: str, privilege: Optional[str] = None) -> ResultSet:
        """Only ALL can be granted at creation time."""
        query = f"CREATE USER {username} WITH PASSWORD '{password}'"
        if privilege:
            if privilege != PRIVILEGE_ALL:
                raise ValidationError(
                    "Only grant ALL cluster-wide privileges are allowed", field="privilege", value=privilege
                )
            query += " WITH ALL PRIVILEGES"
        logger.info(f"👤 Creating user {username}")
        return self._execute(query)

    def change_user_password(self, username: str, new_password: str) -> ResultSet:
        return self._execute(f"SET PASSWORD FOR {username} = '{new_password}'")

    def drop_user(self, username: str) -> ResultSet:
        logger.info(f"👤 Dropping user {username}")
        return self._execute(f"DROP USER {username}")

    def show_users(self) -> ResultSet:
        return self._execute("SHOW USERS")

    def grant(self, privilege: str, username: str, database: Optional[str] = None) -> ResultSet:
        """
        Grant a privilege on a database, or ALL cluster-wide when no
        database is given.

        Raises:
            ValidationError: Unknown privilege, or a cluster-wide grant
                             other than ALL
        """
        return self._execute_privilege("GRANT", privilege, username, database)

    def revoke(self, privilege: str, username: str, database: Optional[str] = None) -> ResultSet:
        """Counterpart of grant()."""
        return self._execute_privilege("REVOKE", privilege, username, database)

    def _execute_privilege(
        self,
        action: str,
        privilege: str,
        username: str,
        database: Optional[str]
    ) -> ResultSet:
        if privilege not in VALID_PRIVILEGES:
            raise ValidationError(
                f"{privilege} is not a valid privileges, allowed privileges: {', '.join(VALID_PRIVILEGES)}",
                field="privilege", value=privilege
            )

        direction = "TO" if action == "GRANT" else "FROM"
        if database:
            query = f"{action} {privilege} ON {database} {direction} {username}"
        elif privilege != PRIVILEGE_ALL:
            raise ValidationError(
                "Only grant ALL cluster-wide privileges are allowed", field="privilege", value=privilege
            )
        else:
            query = f"{action} ALL PRIVILEGES {direction} {username}"

        logger.info(f"🔑 {action} {privilege} for {username} on {database or 'cluster'}")
        return self._execute(query)
