from withings_client.main import main

main(prog_name="withings-client")
