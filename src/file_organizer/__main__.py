from file_organizer.app import main

main()
