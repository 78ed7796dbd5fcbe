import argparse
from datetime import timedelta

from app.utils.security import create_client_key

def main():
    parser = argparse.ArgumentParser(description="Mint the bearer key a front-end sends in the Authorization header")
    parser.add_argument("app_name", help="name of the calling application, e.g. web-pwa")
    parser.add_argument("--days", type=int, default=None, help="validity in days (defaults to CLIENT_KEY_EXPIRE_DAYS)")
    args = parser.parse_args()

    expires = timedelta(days=args.days) if args.days else None
    print(create_client_key(args.app_name, expires_delta=expires))

if __name__ == "__main__":
    main()
