import uvicorn

from storefront.app import create_app
from storefront.config import get_config


def main() -> None:
    config = get_config()
    uvicorn.run(create_app(), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
