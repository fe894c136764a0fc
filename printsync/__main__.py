import uvicorn

from printsync.config import PORT


def main() -> None:
    uvicorn.run("printsync.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
