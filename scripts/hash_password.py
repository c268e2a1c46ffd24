import sys
import os
import getpass

# Ensure we can import recruiter modules
sys.path.append(os.getcwd())

from recruiter.core.security import get_password_hash


def main():
    password = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("Admin password: ")
    if not password:
        print("Error: empty password")
        sys.exit(1)
    print("Set this as ADMIN_PASSWORD_HASH:")
    print(get_password_hash(password))


if __name__ == "__main__":
    main()
