from referral_ledger.api.app import FastAPIManager


server_manager = FastAPIManager()
app = server_manager.get_app()


def run():
    server_manager.start_server()


if __name__ == "__main__":
    run()
