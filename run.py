import uvicorn

from spirit_gacha.utils.logging import setup_logging

if __name__ == "__main__":
    setup_logging("backend.log")
    # Pull locks are per process, a second worker would let one player pull twice at once
    uvicorn.run(
        "spirit_gacha.main:app",
        host="127.0.0.1",
        port=3011,
        workers=1,
        log_config=None,
        log_level=None,
    )
